"""
dropkey_core.utils
------------------
Lightweight helpers for id generation, UTC timestamping, and strict base64.
Every transport-encoded value (keys, signatures, ciphertext, challenges)
passes through b64d before it is treated as bytes.
"""

from __future__ import annotations
import base64, hashlib, uuid
from datetime import datetime, timezone

TS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def b64d(s: str) -> bytes:
    # strict: rejects non-alphabet characters and bad padding (ValueError)
    return base64.b64decode(s.encode("ascii"), validate=True)

def utc_now() -> datetime:
    # second precision, timezone-aware
    return datetime.now(timezone.utc).replace(microsecond=0)

def iso_ts(dt: datetime) -> str:
    # RFC3339 / ISO 8601 in UTC, second precision
    return dt.astimezone(timezone.utc).strftime(TS_FORMAT)

def parse_ts(s: str) -> datetime:
    return datetime.strptime(s, TS_FORMAT).replace(tzinfo=timezone.utc)

def new_id() -> str:
    return str(uuid.uuid4())

def is_uuid(s: str) -> bool:
    # canonical hyphenated form only; braces, urn: and bare hex are refused
    try:
        return str(uuid.UUID(s)) == s.lower()
    except (ValueError, AttributeError, TypeError):
        return False

def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()

def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
