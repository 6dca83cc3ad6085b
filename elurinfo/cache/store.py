"""
Record store contract.

The freshness cache talks to storage only through RecordStore. Two
implementations exist: SQLRecordStore (PostgreSQL through async SQLAlchemy)
and InMemoryRecordStore.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import List, Optional


@dataclass
class StoredRecord:
    """One cached record, independent of the storage backend."""
    category: str
    key: str
    payload: str
    last_update: datetime
    valid_date: Optional[date] = None
    issue_date: Optional[date] = None
    expires_at: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def issued_on(self) -> date:
        """Issue date, or the UTC day of last_update for records without one."""
        return self.issue_date or self.last_update.date()

    def copy(self, **changes) -> "StoredRecord":
        return replace(self, **changes)


@dataclass
class RecordFilter:
    """
    Conditions for delete_where. All given conditions must hold.

    Attributes:
        key: Only records with this key
        updated_before: last_update strictly before this instant
        updated_after: last_update strictly after this instant
        valid_before: valid_date strictly before this day
        expires_before: expires_at at or before this instant
    """
    key: Optional[str] = None
    updated_before: Optional[datetime] = None
    updated_after: Optional[datetime] = None
    valid_before: Optional[date] = None
    expires_before: Optional[datetime] = None

    def is_empty(self) -> bool:
        return all(
            value is None for value in (
                self.key, self.updated_before, self.updated_after,
                self.valid_before, self.expires_before,
            )
        )

    def matches(self, record: StoredRecord) -> bool:
        if self.key is not None and record.key != self.key:
            return False
        if self.updated_before is not None and not record.last_update < self.updated_before:
            return False
        if self.updated_after is not None and not record.last_update > self.updated_after:
            return False
        if self.valid_before is not None:
            if record.valid_date is None or not record.valid_date < self.valid_before:
                return False
        if self.expires_before is not None:
            if record.expires_at is None or not record.expires_at <= self.expires_before:
                return False
        return True


@dataclass
class KeyStatistics:
    """Per-key aggregate over the stored records of a category."""
    key: str
    count: int
    latest_update: datetime
    latest_valid_date: Optional[date] = None


class RecordStore(ABC):
    """Persisted store used by the freshness cache."""

    @abstractmethod
    async def get_latest(self, category: str, key: str) -> Optional[StoredRecord]:
        """Most recently updated record for (category, key)."""

    @abstractmethod
    async def upsert_by_key(self, record: StoredRecord) -> StoredRecord:
        """Insert the record or replace the one with the same key and valid_date."""

    @abstractmethod
    async def insert_versioned(self, record: StoredRecord) -> StoredRecord:
        """Append the record, keeping earlier rows for the key."""

    @abstractmethod
    async def delete_by_key(self, category: str, key: str) -> int:
        """Delete every record of (category, key). Returns rows deleted."""

    @abstractmethod
    async def delete_record(self, record_id: int) -> bool:
        """Delete one record by id."""

    @abstractmethod
    async def delete_where(self, category: str, record_filter: RecordFilter) -> int:
        """Delete the records of a category matching the filter."""

    @abstractmethod
    async def list_latest_per_key(
        self,
        category: str,
        keys: Optional[List[str]] = None
    ) -> List[StoredRecord]:
        """Latest record of each key, newest first."""

    @abstractmethod
    async def list_history(
        self,
        category: str,
        key: str,
        since: Optional[date] = None,
        until: Optional[date] = None,
        limit: int = 30
    ) -> List[StoredRecord]:
        """Records of one key issued within [since, until], latest issue first."""

    @abstractmethod
    async def key_statistics(self, category: str) -> List[KeyStatistics]:
        """Count, latest update and latest valid date per key."""

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the store is reachable."""

    async def close(self) -> None:
        """Release any resources held by the store."""
