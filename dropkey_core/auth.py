"""
dropkey_core.auth
-----------------
Passwordless challenge/response authentication.

A caller proves possession of a registered key by signing a challenge of
its own choosing. Nothing is minted, stored or invalidated here: every call
is verified on its own, so a captured (challenge, signature) pair can be
replayed. Freshness is left to the boundary layer.

    START -> VALIDATING_INPUT -> RESOLVING_IDENTITY -> VERIFYING_SIGNATURE
          -> AUTHENTICATED | REJECTED

A rejection carries ``state="rejected"`` and the step it failed at in
``failed_at``.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from .crypto import Validator, compute_pubkey_fingerprint
from .errors import DropKeyError, ErrorKind
from .identity import IdentityRegistry
from .logger import get_logger
from .storage import IdentityRecord
from .utils import is_blank


class AuthState(Enum):
    START = "start"
    VALIDATING_INPUT = "validating_input"
    RESOLVING_IDENTITY = "resolving_identity"
    VERIFYING_SIGNATURE = "verifying_signature"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AuthResult:
    authenticated: bool
    identity: IdentityRecord
    state: AuthState = AuthState.AUTHENTICATED


class Authenticator:
    def __init__(
        self,
        registry: IdentityRegistry,
        validator: Validator,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.validator = validator
        self.log = logger or get_logger("DropKey.Auth")

    def _reject(self, failed_at: AuthState, kind: ErrorKind, message: str, user_id=None, **ctx) -> DropKeyError:
        level = logging.WARNING if kind is ErrorKind.INVALID_SIGNATURE else logging.INFO
        ctx.update(state=AuthState.REJECTED.value, failed_at=failed_at.value)
        self.log.log(level, {
            "event": "auth_rejected",
            "reason": kind.value,
            "user_id": user_id,
            **ctx,
        })
        return DropKeyError(kind, message, user_id=user_id, **ctx)

    def authenticate(self, user_id: str, signature: str, challenge: str) -> AuthResult:
        """
        Verify ``signature`` over the decoded ``challenge`` with the public
        key registered for ``user_id``. All three arguments are base64
        transport strings. Returns the verified identity or raises.
        """
        state = AuthState.START
        self.log.debug({"event": "auth_started", "state": state.value, "user_id": user_id})

        state = AuthState.VALIDATING_INPUT
        if is_blank(user_id):
            raise self._reject(state, ErrorKind.EMPTY_USER_ID, "user id is empty")
        if is_blank(challenge):
            raise self._reject(state, ErrorKind.VALIDATION_ERROR, "challenge is empty", user_id)
        if is_blank(signature):
            raise self._reject(state, ErrorKind.EMPTY_SIGNATURE, "signature is empty", user_id)
        try:
            sig = self.validator.decode_signature(signature)
        except DropKeyError as e:
            raise self._reject(state, ErrorKind.INVALID_SIGNATURE, "signature is malformed", user_id) from e

        state = AuthState.RESOLVING_IDENTITY
        try:
            identity = self.registry.get_by_id(user_id)
        except DropKeyError as e:
            if e.kind is ErrorKind.STORAGE_ERROR:
                raise
            raise self._reject(state, ErrorKind.USER_NOT_FOUND, "user not found", user_id) from e

        try:
            public_key = self.validator.decode_key(identity.public_key)
        except DropKeyError as e:
            # registered keys are validated on the way in; this is corrupt data
            self.log.error({"event": "stored_key_corrupt", "user_id": user_id})
            raise DropKeyError(
                ErrorKind.INVALID_PUBLIC_KEY, "stored public key is invalid", fatal=True, user_id=user_id,
            ) from e

        state = AuthState.VERIFYING_SIGNATURE
        try:
            message = self.validator.decode_payload(challenge)
        except DropKeyError as e:
            raise self._reject(state, ErrorKind.VALIDATION_ERROR, "challenge is not valid base64", user_id) from e
        if not self.validator.verify(public_key, message, sig):
            raise self._reject(
                state, ErrorKind.INVALID_SIGNATURE, "signature verification failed", user_id,
                key_fpr=compute_pubkey_fingerprint(identity.public_key),
            )

        self.log.info({"event": "auth_succeeded", "user_id": identity.id})
        return AuthResult(authenticated=True, identity=identity)
