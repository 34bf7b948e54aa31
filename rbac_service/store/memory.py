"""
In-Memory Store
=============================================================================
A PersistenceStore backed by dicts held on the INSTANCE (never module
globals), so every test or demo process gets its own isolated data.

Records are deep-copied on the way in and on the way out: a caller that
mutates a returned record (or a matrix nested inside it) cannot change
what is stored. Only update_by_id() changes stored data.

This store has no foreign keys. Referential integrity is enforced by the
services' pre-check queries, exactly as it would be for any backend
without native constraint support.
=============================================================================
"""

import copy
import uuid
from typing import Any

from rbac_service.store.base import COLLECTIONS, DuplicateRecordError, Record, StoreError


def new_id() -> str:
    """Short opaque identifier for new records."""
    return uuid.uuid4().hex[:12]


class InMemoryStore:
    """Dict-backed implementation of rbac_service.store.base.PersistenceStore."""

    def __init__(self, seed: dict[str, list[Record]] | None = None):
        self._collections: dict[str, dict[str, Record]] = {name: {} for name in COLLECTIONS}
        for collection, records in (seed or {}).items():
            for record in records:
                self._table(collection)[record["id"]] = copy.deepcopy(record)

    def _table(self, collection: str) -> dict[str, Record]:
        try:
            return self._collections[collection]
        except KeyError:
            raise StoreError(f"Unknown collection '{collection}'") from None

    async def list_all(self, collection: str, order_by: str | None = None) -> list[Record]:
        records = [copy.deepcopy(r) for r in self._table(collection).values()]
        if order_by:
            # None sorts first, mirroring NULLS FIRST in the SQL store.
            records.sort(key=lambda r: (r.get(order_by) is not None, r.get(order_by) or ""))
        return records

    async def get_by_id(self, collection: str, record_id: str) -> Record | None:
        record = self._table(collection).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def get_by_filter(self, collection: str, **filters: Any) -> list[Record]:
        return [
            copy.deepcopy(record)
            for record in self._table(collection).values()
            if all(record.get(field) == value for field, value in filters.items())
        ]

    async def insert(self, collection: str, record: Record) -> Record:
        table = self._table(collection)
        stored = copy.deepcopy(record)
        stored["id"] = stored.get("id") or new_id()
        if stored["id"] in table:
            raise DuplicateRecordError(collection, f"id '{stored['id']}' already exists")
        table[stored["id"]] = stored
        return copy.deepcopy(stored)

    async def update_by_id(
        self, collection: str, record_id: str, changes: Record
    ) -> Record | None:
        table = self._table(collection)
        if record_id not in table:
            return None
        updated = {**table[record_id], **copy.deepcopy(changes), "id": record_id}
        table[record_id] = updated
        return copy.deepcopy(updated)

    async def delete_by_id(self, collection: str, record_id: str) -> bool:
        return self._table(collection).pop(record_id, None) is not None

    async def ping(self) -> None:
        return None
