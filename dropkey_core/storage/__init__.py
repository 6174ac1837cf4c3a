# dropkey_core/storage/__init__.py
from __future__ import annotations

from .models import IdentityRecord, PasteRecord
from .provider import StorageProvider, StorageProviderError, DuplicateRecordError
from .providers.memory_provider import InMemoryStorage
from .providers.sqlite_provider import SQLiteStorage
from dropkey_core.constants import DEFAULT_DB_PATH
import os


def load_storage_provider(config: dict | None = None) -> StorageProvider:
    """
    Factory resolver for selecting the runtime storage backend.

    For now:
        - sqlite (default)
        - memory
    """
    config = config or {}
    provider = config.get("provider") or os.getenv("DROPKEY_STORAGE_PROVIDER", "sqlite")

    if provider == "memory":
        return InMemoryStorage()

    if provider == "sqlite":
        db_path = config.get("sqlite_path") or os.getenv("DROPKEY_DB_PATH", DEFAULT_DB_PATH)
        return SQLiteStorage(db_path)

    raise ValueError(f"Unknown storage provider: {provider}")


__all__ = [
    "IdentityRecord",
    "PasteRecord",
    "StorageProvider",
    "StorageProviderError",
    "DuplicateRecordError",
    "InMemoryStorage",
    "SQLiteStorage",
    "load_storage_provider",
]
