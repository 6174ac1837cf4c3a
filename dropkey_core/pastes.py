"""
dropkey_core.pastes
-------------------
Content store for signed, time-bounded pastes.

The server never decrypts anything. A paste is accepted only when its
signature verifies over the raw ciphertext bytes under the owner's key, and
only for keys that are already registered. The signed message is the
ciphertext alone, so metadata (expiry, id) is not covered by it.

Expiry is lazy: a paste whose ``expires_at`` has passed stays in storage but
reads as EXPIRED and is left out of listings. No sweeper runs.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple
import logging

from .constants import MAX_TTL_SECONDS, PASTES_TABLE
from .crypto import Validator, compute_pubkey_fingerprint
from .errors import DropKeyError, ErrorKind
from .identity import IdentityRegistry
from .logger import get_logger
from .storage import PasteRecord, StorageProvider, StorageProviderError
from .utils import is_blank, is_uuid, new_id, utc_now


class ContentStore:
    def __init__(
        self,
        storage: StorageProvider,
        registry: IdentityRegistry,
        validator: Validator,
        clock: Callable[[], datetime] = utc_now,
        max_ttl_seconds: int = MAX_TTL_SECONDS,
        id_factory: Callable[[], str] = new_id,
        logger: Optional[logging.Logger] = None,
    ):
        self.storage = storage
        self.registry = registry
        self.validator = validator
        self.clock = clock
        if not 0 < max_ttl_seconds <= MAX_TTL_SECONDS:
            raise ValueError(f"max_ttl_seconds must be in 1..{MAX_TTL_SECONDS}, got {max_ttl_seconds}")
        self.max_ttl = timedelta(seconds=max_ttl_seconds)
        self.id_factory = id_factory
        self.log = logger or get_logger("DropKey.Pastes")

    def _now(self) -> datetime:
        return self.clock().replace(microsecond=0)

    # ------------------------------------------------------------------
    # Validation pipeline shared by create() and update()
    # ------------------------------------------------------------------
    def _decode_content(self, ciphertext: str, signature: str, public_key: str) -> Tuple[bytes, bytes, bytes]:
        if is_blank(ciphertext):
            raise DropKeyError(ErrorKind.EMPTY_CIPHERTEXT, "paste has empty ciphertext")
        try:
            ct = self.validator.decode_payload(ciphertext)
        except DropKeyError as e:
            raise DropKeyError(ErrorKind.INVALID_CIPHERTEXT, "paste ciphertext is not base64 encoded") from e

        if is_blank(signature):
            raise DropKeyError(ErrorKind.EMPTY_SIGNATURE, "paste has empty signature")
        try:
            sig = self.validator.decode_signature(signature)
        except DropKeyError as e:
            raise DropKeyError(
                ErrorKind.INVALID_SIGNATURE, "paste signature is not base64 encoded or has invalid size",
            ) from e

        if is_blank(public_key):
            raise DropKeyError(ErrorKind.INVALID_PUBLIC_KEY, "paste has empty public key")
        try:
            key = self.validator.decode_key(public_key)
        except DropKeyError as e:
            raise DropKeyError(ErrorKind.INVALID_PUBLIC_KEY, "paste has invalid public key") from e

        return ct, sig, key

    def _verify(self, key: bytes, ct: bytes, sig: bytes, public_key: str, paste_id: Optional[str] = None) -> None:
        if not self.validator.verify(key, ct, sig):
            fpr = compute_pubkey_fingerprint(public_key)
            self.log.warning({"event": "paste_signature_rejected", "paste_id": paste_id, "key_fpr": fpr})
            raise DropKeyError(
                ErrorKind.SIGNATURE_VERIFICATION_FAILED, "invalid signature verification",
                paste_id=paste_id, key_fpr=fpr,
            )

    def _resolve_owner(self, public_key: str) -> None:
        try:
            self.registry.get_by_public_key(public_key)
        except DropKeyError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                raise DropKeyError(
                    ErrorKind.OWNER_NOT_FOUND, "user for paste does not exist",
                    key_fpr=compute_pubkey_fingerprint(public_key),
                ) from e
            raise

    def _check_id(self, id: str) -> None:
        if is_blank(id) or not is_uuid(id):
            raise DropKeyError(ErrorKind.INVALID_ID, "invalid paste id")

    def _storage_failure(self, event: str, **ctx) -> DropKeyError:
        self.log.error({"event": event, **ctx}, exc_info=True)
        return DropKeyError(ErrorKind.STORAGE_ERROR, "internal storage failure", **ctx)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def create(self, ciphertext: str, signature: str, public_key: str, ttl_seconds: int) -> str:
        """
        Store a new paste that expires ``ttl_seconds`` from now and return
        its generated id. The ttl must land strictly in the future and no
        further out than the configured horizon (7 days by default).
        """
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int):
            raise DropKeyError(ErrorKind.VALIDATION_ERROR, "ttl must be an integer number of seconds")
        now = self._now()
        # compare as integers first; huge ttls would overflow timedelta
        if ttl_seconds <= 0:
            raise DropKeyError(ErrorKind.ALREADY_EXPIRED, "paste has already expired")
        if ttl_seconds > self.max_ttl.total_seconds():
            raise DropKeyError(ErrorKind.EXPIRY_TOO_LONG, "paste expiry date is too long")
        expires_at = now + timedelta(seconds=ttl_seconds)

        ct, sig, key = self._decode_content(ciphertext, signature, public_key)
        self._resolve_owner(public_key)
        self._verify(key, ct, sig, public_key)

        rec = PasteRecord(
            id=self.id_factory(),
            ciphertext=ciphertext,
            signature=signature,
            public_key=public_key,
            expires_at=expires_at,
        )
        try:
            self.storage.create(PASTES_TABLE, rec)
        except StorageProviderError as e:
            raise self._storage_failure("paste_create_failed", paste_id=rec.id) from e

        self.log.info({
            "event": "paste_created",
            "paste_id": rec.id,
            "key_fpr": compute_pubkey_fingerprint(public_key),
            "expires_at": rec.to_dict()["expires_at"],
        })
        return rec.id

    def get_by_id(self, id: str) -> PasteRecord:
        self._check_id(id)
        try:
            rec = self.storage.get_by_id(PASTES_TABLE, id)
        except StorageProviderError as e:
            raise self._storage_failure("paste_lookup_failed", paste_id=id) from e
        if rec is None:
            raise DropKeyError(ErrorKind.NOT_FOUND, "paste not found", paste_id=id)
        if not rec.is_live(self._now()):
            self.log.info({"event": "paste_expired", "paste_id": id})
            raise DropKeyError(ErrorKind.EXPIRED, "paste has expired", paste_id=id)
        return rec

    def update(self, id: str, ciphertext: str, signature: str, public_key: str) -> None:
        """
        Replace ciphertext, signature and owner key of an existing paste.

        The new signature must verify over the new ciphertext. The owner is
        not re-resolved against the registry and ``expires_at`` is left as
        stored. Concurrent updates are last-writer-wins.
        """
        self._check_id(id)
        ct, sig, key = self._decode_content(ciphertext, signature, public_key)
        self._verify(key, ct, sig, public_key, paste_id=id)

        try:
            updated = self.storage.update_columns(PASTES_TABLE, id, {
                "ciphertext": ciphertext,
                "signature": signature,
                "public_key": public_key,
            })
        except StorageProviderError as e:
            raise self._storage_failure("paste_update_failed", paste_id=id) from e
        if not updated:
            raise DropKeyError(ErrorKind.NOT_FOUND, "paste not found", paste_id=id)

        self.log.info({"event": "paste_updated", "paste_id": id})

    def get_by_public_key(self, public_key: str) -> List[PasteRecord]:
        """Live pastes owned by ``public_key``, in creation order."""
        if is_blank(public_key):
            raise DropKeyError(ErrorKind.EMPTY_PUBLIC_KEY, "public key is empty")
        try:
            self.validator.decode_key(public_key)
        except DropKeyError as e:
            raise DropKeyError(ErrorKind.INVALID_PUBLIC_KEY, "public key is invalid") from e

        self._resolve_owner(public_key)
        try:
            pastes = self.storage.get_by_column(PASTES_TABLE, "public_key", public_key)
        except StorageProviderError as e:
            raise self._storage_failure("paste_list_failed", key_fpr=compute_pubkey_fingerprint(public_key)) from e

        now = self._now()
        live = [p for p in pastes if p.is_live(now)]
        return sorted(live, key=lambda p: p.created_seq)
