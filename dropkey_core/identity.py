"""
dropkey_core.identity
---------------------
Identity registry: maps generated identity ids to Ed25519 public keys.

An identity is created once and never mutated or deleted here. The public
key string is unique across identities; the check-then-insert below is
backed by the provider's unique constraint, so a concurrent duplicate still
surfaces as DUPLICATE_KEY.
"""

from __future__ import annotations
from typing import Callable, Optional
import logging

from .constants import IDENTITIES_TABLE
from .crypto import Validator, compute_pubkey_fingerprint
from .errors import DropKeyError, ErrorKind
from .logger import get_logger
from .storage import DuplicateRecordError, IdentityRecord, StorageProvider, StorageProviderError
from .utils import is_blank, is_uuid, new_id


class IdentityRegistry:
    def __init__(
        self,
        storage: StorageProvider,
        validator: Validator,
        id_factory: Callable[[], str] = new_id,
        logger: Optional[logging.Logger] = None,
    ):
        self.storage = storage
        self.validator = validator
        self.id_factory = id_factory
        self.log = logger or get_logger("DropKey.Registry")

    def _check_key(self, public_key: str) -> None:
        if is_blank(public_key):
            raise DropKeyError(ErrorKind.EMPTY_PUBLIC_KEY, "public key is empty")
        try:
            self.validator.decode_key(public_key)
        except DropKeyError as e:
            raise DropKeyError(
                ErrorKind.INVALID_PUBLIC_KEY,
                "public key is not base64 encoded or has invalid size",
                cause=e.kind.value,
            ) from e

    def register(self, public_key: str) -> str:
        """Create an identity for ``public_key`` and return its new id."""
        self._check_key(public_key)
        fpr = compute_pubkey_fingerprint(public_key)

        try:
            existing = self.storage.get_by_column(IDENTITIES_TABLE, "public_key", public_key)
        except StorageProviderError as e:
            self.log.error({"event": "identity_lookup_failed", "key_fpr": fpr}, exc_info=True)
            raise DropKeyError(ErrorKind.USER_CREATION_FAILED, "failed to create user") from e
        if existing:
            raise DropKeyError(ErrorKind.DUPLICATE_KEY, "user already exists", key_fpr=fpr)

        rec = IdentityRecord(id=self.id_factory(), public_key=public_key)
        try:
            self.storage.create(IDENTITIES_TABLE, rec)
        except DuplicateRecordError as e:
            # lost a race against a concurrent registration of the same key
            raise DropKeyError(ErrorKind.DUPLICATE_KEY, "user already exists", key_fpr=fpr) from e
        except StorageProviderError as e:
            self.log.error({"event": "identity_create_failed", "user_id": rec.id, "key_fpr": fpr}, exc_info=True)
            raise DropKeyError(ErrorKind.USER_CREATION_FAILED, "failed to create user") from e

        self.log.info({"event": "identity_registered", "user_id": rec.id, "key_fpr": fpr})
        return rec.id

    def get_by_id(self, id: str) -> IdentityRecord:
        if is_blank(id):
            raise DropKeyError(ErrorKind.EMPTY_ID, "user id is empty")
        if not is_uuid(id):
            raise DropKeyError(ErrorKind.INVALID_ID, "user id is malformed")
        try:
            rec = self.storage.get_by_id(IDENTITIES_TABLE, id)
        except StorageProviderError as e:
            self.log.error({"event": "identity_lookup_failed", "user_id": id}, exc_info=True)
            raise DropKeyError(ErrorKind.STORAGE_ERROR, "internal storage failure") from e
        if rec is None:
            raise DropKeyError(ErrorKind.NOT_FOUND, "user not found", user_id=id)
        return rec

    def get_by_public_key(self, public_key: str) -> IdentityRecord:
        self._check_key(public_key)
        fpr = compute_pubkey_fingerprint(public_key)
        try:
            found = self.storage.get_by_column(IDENTITIES_TABLE, "public_key", public_key)
        except StorageProviderError as e:
            self.log.error({"event": "identity_lookup_failed", "key_fpr": fpr}, exc_info=True)
            raise DropKeyError(ErrorKind.STORAGE_ERROR, "internal storage failure") from e
        if not found:
            self.log.debug({"event": "identity_absent", "key_fpr": fpr})
            raise DropKeyError(ErrorKind.NOT_FOUND, "user not found", key_fpr=fpr)
        return found[0]
