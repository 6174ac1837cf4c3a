# dropkey_core/storage/provider.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Union

from dropkey_core.constants import IDENTITIES_TABLE, PASTES_TABLE
from dropkey_core.storage.models import IdentityRecord, PasteRecord

Record = Union[IdentityRecord, PasteRecord]

MODELS = {
    IDENTITIES_TABLE: IdentityRecord,
    PASTES_TABLE: PasteRecord,
}

# Columns a caller may filter or update on, per table.
QUERYABLE = {
    IDENTITIES_TABLE: {"id", "public_key"},
    PASTES_TABLE: {"id", "public_key"},
}
UPDATABLE = {
    IDENTITIES_TABLE: set(),
    PASTES_TABLE: {"ciphertext", "signature", "public_key"},
}


class StorageProviderError(Exception):
    """Backend failure; services surface it as an opaque storage error."""


class DuplicateRecordError(StorageProviderError):
    """A uniqueness constraint (id, identity public key) was violated."""


def check_table(table: str) -> None:
    if table not in MODELS:
        raise StorageProviderError(f"unknown table: {table}")


def check_columns(table: str, columns, allowed: Dict[str, set]) -> None:
    bad = set(columns) - allowed[table]
    if bad:
        raise StorageProviderError(f"columns not allowed on {table}: {sorted(bad)}")


class StorageProvider:
    """
    Persistence collaborator interface.

    Each call is one atomic read or write. ``get_by_id`` returns None for
    "no rows"; anything else that goes wrong raises StorageProviderError.
    """
    def create(self, table: str, record: Record) -> None: ...
    def get_by_id(self, table: str, id: str) -> Optional[Record]: ...
    def get_by_column(self, table: str, column: str, value: Any) -> List[Record]: ...
    def update_columns(self, table: str, id: str, columns: Dict[str, Any]) -> bool: ...
    def close(self) -> None: ...
