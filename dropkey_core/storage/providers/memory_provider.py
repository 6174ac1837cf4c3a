from typing import Optional, Dict, Any, List
from dataclasses import replace
import itertools, threading

from dropkey_core.constants import IDENTITIES_TABLE
from dropkey_core.storage.provider import (
    MODELS, QUERYABLE, UPDATABLE, Record, StorageProvider,
    DuplicateRecordError, check_columns, check_table,
)


class InMemoryStorage(StorageProvider):
    def __init__(self):
        self.tables: Dict[str, Dict[str, Record]] = {t: {} for t in MODELS}
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, table: str, record: Record):
        check_table(table)
        rows = self.tables[table]
        with self._lock:
            if record.id in rows:
                raise DuplicateRecordError(f"{table}: duplicate id")
            if table == IDENTITIES_TABLE and any(
                r.public_key == record.public_key for r in rows.values()
            ):
                raise DuplicateRecordError(f"{table}: duplicate public_key")
            if hasattr(record, "created_seq"):
                record = replace(record, created_seq=next(self._seq))
            # store a copy so caller-side mutation cannot leak in
            rows[record.id] = replace(record)

    def get_by_id(self, table: str, id: str) -> Optional[Record]:
        check_table(table)
        with self._lock:
            rec = self.tables[table].get(id)
            return replace(rec) if rec else None

    def get_by_column(self, table: str, column: str, value: Any) -> List[Record]:
        check_table(table)
        check_columns(table, [column], QUERYABLE)
        # snapshot under the lock; dicts keep insertion order, which is creation order
        with self._lock:
            rows = list(self.tables[table].values())
        return [replace(r) for r in rows if getattr(r, column) == value]

    def update_columns(self, table: str, id: str, columns: Dict[str, Any]) -> bool:
        check_table(table)
        check_columns(table, columns.keys(), UPDATABLE)
        with self._lock:
            rec = self.tables[table].get(id)
            if rec is None:
                return False
            self.tables[table][id] = replace(rec, **columns)
        return True

    def close(self):
        return
