# dropkey_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from dropkey_core.utils import iso_ts, parse_ts


@dataclass
class IdentityRecord:
    """
    Storage-level representation of a registered identity.

    ``public_key`` is the base64 transport form exactly as registered;
    uniqueness is enforced on this string.
    """
    id: str
    public_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {"user_id": self.id, "public_key": self.public_key}

    def to_row(self) -> Dict[str, Any]:
        return {"id": self.id, "public_key": self.public_key}

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "IdentityRecord":
        return cls(id=row["id"], public_key=row["public_key"])


@dataclass
class PasteRecord:
    """
    A stored paste. ``ciphertext`` and ``signature`` stay in their base64
    transport form; ``expires_at`` is timezone-aware UTC, second precision.
    ``created_seq`` is assigned by the provider and gives creation order.
    """
    id: str
    ciphertext: str
    signature: str
    public_key: str
    expires_at: datetime
    created_seq: int = 0

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ciphertext": self.ciphertext,
            "signature": self.signature,
            "public_key": self.public_key,
            "expires_at": iso_ts(self.expires_at),
        }

    def to_row(self) -> Dict[str, Any]:
        return self.to_dict()

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PasteRecord":
        expires_at = row["expires_at"]
        if isinstance(expires_at, str):
            expires_at = parse_ts(expires_at)
        return cls(
            id=row["id"],
            ciphertext=row["ciphertext"],
            signature=row["signature"],
            public_key=row["public_key"],
            expires_at=expires_at,
            created_seq=row.get("created_seq") or 0,
        )
