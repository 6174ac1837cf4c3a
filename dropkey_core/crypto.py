"""
dropkey_core.crypto
-------------------
Cryptographic validation for DropKey:

- Validator: decodes transport-encoded key / signature / payload material
  and verifies Ed25519 signatures
- Ed25519 helpers used by clients and tests: ed25519_generate(), ed25519_sign()
- compute_pubkey_fingerprint(): log-safe reference to a public key

Every other component routes raw key and signature strings through a
Validator before treating them as cryptographic material. Nothing here
decrypts payloads; ciphertext is only ever the signed message.
"""

from __future__ import annotations
from typing import Optional, Tuple
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ed25519

from .constants import PUBLIC_KEY_SIZE, SIGNATURE_SIZE
from .errors import DropKeyError, ErrorKind
from .logger import get_logger
from .utils import b64d, sha256

# --------- Ed25519 (sign/verify) ----------
def ed25519_generate() -> Tuple[bytes, bytes]:
    sk = ed25519.Ed25519PrivateKey.generate()
    pk = sk.public_key()
    return sk.private_bytes_raw(), pk.public_bytes_raw()

def ed25519_sign(priv_raw: bytes, data: bytes) -> bytes:
    sk = ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw)
    return sk.sign(data)

def ed25519_verify(pub_raw: bytes, sig: bytes, data: bytes) -> bool:
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(pub_raw).verify(sig, data)
        return True
    except (InvalidSignature, ValueError, TypeError):
        return False


def compute_pubkey_fingerprint(pubkey_b64: Optional[str]) -> str:
    """
    Stable, log-safe fingerprint for an Ed25519 public key.

    - Input: base64-encoded public key (possibly malformed)
    - Output: first 32 hex chars of SHA256 over the raw key bytes,
      or "invalid" when the material does not decode

    Used wherever a key has to be referenced in logs or error context.
    """
    if not pubkey_b64:
        return "empty"
    try:
        raw = b64d(pubkey_b64)
    except ValueError:
        return "invalid"
    return sha256(raw)[:32]


class Validator:
    """Decodes and checks key/signature material; verifies signatures."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or get_logger("DropKey.Validator")

    def _decode(self, material, what: str) -> bytes:
        if not isinstance(material, str):
            raise DropKeyError(ErrorKind.INVALID_ENCODING, f"{what} must be a base64 string")
        try:
            return b64d(material)
        except ValueError as e:
            raise DropKeyError(ErrorKind.INVALID_ENCODING, f"{what} is not valid base64") from e

    def decode_key(self, material: str) -> bytes:
        raw = self._decode(material, "public key")
        if len(raw) != PUBLIC_KEY_SIZE:
            raise DropKeyError(
                ErrorKind.INVALID_KEY_SIZE,
                f"public key must be {PUBLIC_KEY_SIZE} bytes",
                size=len(raw),
            )
        return raw

    def decode_signature(self, material: str) -> bytes:
        raw = self._decode(material, "signature")
        if len(raw) != SIGNATURE_SIZE:
            raise DropKeyError(
                ErrorKind.INVALID_SIGNATURE_SIZE,
                f"signature must be {SIGNATURE_SIZE} bytes",
                size=len(raw),
            )
        return raw

    def decode_payload(self, material: str) -> bytes:
        """Decode opaque material (ciphertext, challenge); no size rule."""
        return self._decode(material, "payload")

    def verify(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        ok = ed25519_verify(public_key, signature, message)
        if not ok:
            self.log.debug({"event": "signature_mismatch", "key_fpr": sha256(public_key)[:32]})
        return ok
