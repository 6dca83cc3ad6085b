"""
In-memory record store, used with STORE_BACKEND=memory and in tests.
"""
from datetime import date, datetime, timezone
from itertools import count
from typing import Dict, List, Optional

from .store import KeyStatistics, RecordFilter, RecordStore, StoredRecord


class InMemoryRecordStore(RecordStore):
    """RecordStore backed by a dict. Contents are lost on restart."""

    def __init__(self):
        self._records: Dict[int, StoredRecord] = {}
        self._ids = count(1)

    def _for(self, category: str, key: Optional[str] = None) -> List[StoredRecord]:
        return [
            r for r in self._records.values()
            if r.category == category and (key is None or r.key == key)
        ]

    @staticmethod
    def _newest_first(records: List[StoredRecord]) -> List[StoredRecord]:
        return sorted(records, key=lambda r: (r.last_update, r.id or 0), reverse=True)

    def _insert(self, record: StoredRecord) -> StoredRecord:
        stored = record.copy(
            id=next(self._ids),
            created_at=record.created_at or datetime.now(timezone.utc),
        )
        self._records[stored.id] = stored
        return stored.copy()

    @property
    def records(self) -> List[StoredRecord]:
        """Snapshot of every stored record."""
        return [r.copy() for r in self._records.values()]

    async def get_latest(self, category: str, key: str) -> Optional[StoredRecord]:
        records = self._newest_first(self._for(category, key))
        return records[0].copy() if records else None

    async def upsert_by_key(self, record: StoredRecord) -> StoredRecord:
        for existing in self._for(record.category, record.key):
            if existing.valid_date == record.valid_date:
                updated = record.copy(id=existing.id, created_at=existing.created_at)
                self._records[existing.id] = updated
                return updated.copy()
        return self._insert(record)

    async def insert_versioned(self, record: StoredRecord) -> StoredRecord:
        return self._insert(record)

    async def delete_by_key(self, category: str, key: str) -> int:
        return await self.delete_where(category, RecordFilter(key=key))

    async def delete_record(self, record_id: int) -> bool:
        return self._records.pop(record_id, None) is not None

    async def delete_where(self, category: str, record_filter: RecordFilter) -> int:
        if record_filter.is_empty():
            raise ValueError("delete_where requires at least one condition")
        doomed = [r.id for r in self._for(category) if record_filter.matches(r)]
        for record_id in doomed:
            del self._records[record_id]
        return len(doomed)

    async def list_latest_per_key(
        self,
        category: str,
        keys: Optional[List[str]] = None
    ) -> List[StoredRecord]:
        latest: Dict[str, StoredRecord] = {}
        for record in self._newest_first(self._for(category)):
            if keys is not None and record.key not in keys:
                continue
            latest.setdefault(record.key, record)
        return [r.copy() for r in latest.values()]

    async def list_history(
        self,
        category: str,
        key: str,
        since: Optional[date] = None,
        until: Optional[date] = None,
        limit: int = 30
    ) -> List[StoredRecord]:
        records = sorted(
            (
                r for r in self._for(category, key)
                if (since is None or r.issued_on >= since)
                and (until is None or r.issued_on <= until)
            ),
            key=lambda r: (r.issued_on, r.last_update, r.id or 0),
            reverse=True,
        )
        return [r.copy() for r in records[:limit]]

    async def key_statistics(self, category: str) -> List[KeyStatistics]:
        stats: Dict[str, KeyStatistics] = {}
        for record in self._for(category):
            current = stats.get(record.key)
            if current is None:
                stats[record.key] = KeyStatistics(
                    key=record.key,
                    count=1,
                    latest_update=record.last_update,
                    latest_valid_date=record.valid_date,
                )
                continue
            current.count += 1
            current.latest_update = max(current.latest_update, record.last_update)
            if record.valid_date is not None:
                if current.latest_valid_date is None or record.valid_date > current.latest_valid_date:
                    current.latest_valid_date = record.valid_date
        return sorted(stats.values(), key=lambda s: s.key)

    async def ping(self) -> bool:
        return True
