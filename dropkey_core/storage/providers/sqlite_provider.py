from __future__ import annotations
from typing import Optional, Dict, Any, List
import sqlite3, os, threading

from dropkey_core.constants import IDENTITIES_TABLE, PASTES_TABLE
from dropkey_core.storage.provider import (
    MODELS, QUERYABLE, UPDATABLE, Record, StorageProvider,
    StorageProviderError, DuplicateRecordError, check_columns, check_table,
)


class SQLiteStorage(StorageProvider):
    def __init__(self, path="db/dropkey.db"):
        # If no directory, default to current working directory
        if path != ":memory:":
            dir_path = os.path.dirname(path) or "."
            os.makedirs(dir_path, exist_ok=True)
        self.db = sqlite3.connect(path, check_same_thread=False)
        self.db.row_factory = sqlite3.Row
        self._lock = threading.Lock()

        self._init()

    def _init(self) -> None:
        c = self.db.cursor()

        c.execute(f"""CREATE TABLE IF NOT EXISTS {IDENTITIES_TABLE}(
            id TEXT PRIMARY KEY,
            public_key TEXT NOT NULL UNIQUE
        )""")
        # created_seq gives a stable creation order for listings
        c.execute(f"""CREATE TABLE IF NOT EXISTS {PASTES_TABLE}(
            created_seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            ciphertext TEXT NOT NULL,
            signature TEXT NOT NULL,
            public_key TEXT NOT NULL,
            expires_at TEXT NOT NULL
        )""")
        c.execute(f"CREATE INDEX IF NOT EXISTS idx_pastes_public_key ON {PASTES_TABLE}(public_key)")

        self.db.commit()

    def _order(self, table: str) -> str:
        return "created_seq" if table == PASTES_TABLE else "rowid"

    def create(self, table: str, record: Record) -> None:
        check_table(table)
        row = record.to_row()
        keys = ", ".join(row.keys())
        placeholders = ", ".join(["?"] * len(row))
        try:
            with self._lock:
                self.db.execute(
                    f"INSERT INTO {table} ({keys}) VALUES ({placeholders})",
                    tuple(row.values()),
                )
                self.db.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateRecordError(f"{table}: {e}") from e
        except sqlite3.Error as e:
            raise StorageProviderError(f"{table} insert failed: {e}") from e

    def get_by_id(self, table: str, id: str) -> Optional[Record]:
        rows = self.get_by_column(table, "id", id)
        return rows[0] if rows else None

    def get_by_column(self, table: str, column: str, value: Any) -> List[Record]:
        check_table(table)
        check_columns(table, [column], QUERYABLE)
        try:
            with self._lock:
                cur = self.db.execute(
                    f"SELECT * FROM {table} WHERE {column} = ? ORDER BY {self._order(table)}",
                    (value,),
                )
                rows = cur.fetchall()
        except sqlite3.Error as e:
            raise StorageProviderError(f"{table} select failed: {e}") from e
        model = MODELS[table]
        return [model.from_row(dict(r)) for r in rows]

    def update_columns(self, table: str, id: str, columns: Dict[str, Any]) -> bool:
        check_table(table)
        check_columns(table, columns.keys(), UPDATABLE)
        if not columns:
            return self.get_by_id(table, id) is not None
        assignments = ", ".join(f"{col} = ?" for col in columns)
        try:
            with self._lock:
                cur = self.db.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ?",
                    (*columns.values(), id),
                )
                self.db.commit()
        except sqlite3.Error as e:
            raise StorageProviderError(f"{table} update failed: {e}") from e
        return cur.rowcount > 0

    def close(self):
        self.db.close()
