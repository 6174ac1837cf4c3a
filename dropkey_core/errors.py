"""
dropkey_core.errors
-------------------
Closed error taxonomy shared by every component.

Callers branch on ``DropKeyError.kind`` (an ``ErrorKind``), never on the
message text. ``context`` carries structured detail for logs and must not
hold raw key material: keys are referenced by fingerprint.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Dict


class ErrorClass(Enum):
    VALIDATION = "validation"
    ABSENT = "absent"
    CRYPTO = "crypto"
    CONFLICT = "conflict"
    STORAGE = "storage"
    AUTH = "auth"


class ErrorKind(Enum):
    # validation
    EMPTY_PUBLIC_KEY = "empty_public_key"
    INVALID_PUBLIC_KEY = "invalid_public_key"
    INVALID_ENCODING = "invalid_encoding"
    INVALID_KEY_SIZE = "invalid_key_size"
    INVALID_SIGNATURE_SIZE = "invalid_signature_size"
    EMPTY_ID = "empty_id"
    INVALID_ID = "invalid_id"
    EMPTY_USER_ID = "empty_user_id"
    VALIDATION_ERROR = "validation_error"
    EMPTY_SIGNATURE = "empty_signature"
    EMPTY_CIPHERTEXT = "empty_ciphertext"
    INVALID_CIPHERTEXT = "invalid_ciphertext"
    ALREADY_EXPIRED = "already_expired"
    EXPIRY_TOO_LONG = "expiry_too_long"
    # absent
    NOT_FOUND = "not_found"
    USER_NOT_FOUND = "user_not_found"
    OWNER_NOT_FOUND = "owner_not_found"
    EXPIRED = "expired"
    # crypto
    INVALID_SIGNATURE = "invalid_signature"
    SIGNATURE_VERIFICATION_FAILED = "signature_verification_failed"
    # conflict
    DUPLICATE_KEY = "duplicate_key"
    # storage
    STORAGE_ERROR = "storage_error"
    USER_CREATION_FAILED = "user_creation_failed"
    # boundary
    UNAUTHORIZED = "unauthorized"

    @property
    def error_class(self) -> ErrorClass:
        return _CLASSES.get(self, ErrorClass.VALIDATION)


_CLASSES = {
    ErrorKind.NOT_FOUND: ErrorClass.ABSENT,
    ErrorKind.USER_NOT_FOUND: ErrorClass.ABSENT,
    ErrorKind.OWNER_NOT_FOUND: ErrorClass.ABSENT,
    ErrorKind.EXPIRED: ErrorClass.ABSENT,
    ErrorKind.INVALID_SIGNATURE: ErrorClass.CRYPTO,
    ErrorKind.SIGNATURE_VERIFICATION_FAILED: ErrorClass.CRYPTO,
    ErrorKind.DUPLICATE_KEY: ErrorClass.CONFLICT,
    ErrorKind.STORAGE_ERROR: ErrorClass.STORAGE,
    ErrorKind.USER_CREATION_FAILED: ErrorClass.STORAGE,
    ErrorKind.UNAUTHORIZED: ErrorClass.AUTH,
}


class DropKeyError(Exception):
    """A failed operation, tagged with the outcome that stopped it."""

    def __init__(self, kind: ErrorKind, message: str = "", fatal: bool = False, **context: Any):
        self.kind = kind
        self.message = message or kind.value.replace("_", " ")
        self.fatal = fatal
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    @property
    def error_class(self) -> ErrorClass:
        return self.kind.error_class

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind.value, "message": self.message}

    def __repr__(self) -> str:
        return f"DropKeyError({self.kind.name}, {self.message!r})"
