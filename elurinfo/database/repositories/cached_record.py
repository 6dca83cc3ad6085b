"""
CachedRecord repository for database operations.
"""
from datetime import date
from typing import Any, List, Optional, Sequence

from sqlalchemy import Date, cast, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from elurinfo.cache.store import RecordFilter
from elurinfo.database.models.cached_record import CachedRecord


class CachedRecordRepository:
    """
    Repository for CachedRecord model operations.

    Works within the session it is given; committing is the caller's job.
    """

    def __init__(self, session: AsyncSession):
        """Initialize with session."""
        self.session = session

    async def get_latest(self, category: str, key: str) -> Optional[CachedRecord]:
        """
        Get the most recently updated record for a key.

        Args:
            category: Data category
            key: Record key

        Returns:
            CachedRecord instance or None if not found
        """
        result = await self.session.execute(
            select(CachedRecord)
            .where(CachedRecord.category == category, CachedRecord.key == key)
            .order_by(CachedRecord.last_update.desc(), CachedRecord.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def upsert_by_key(self, record: CachedRecord) -> CachedRecord:
        """
        Replace the record with the same category, key and valid_date,
        or insert it if there is none.

        Args:
            record: Transient CachedRecord with the new values

        Returns:
            The persisted CachedRecord
        """
        if record.valid_date is None:
            valid_date_clause = CachedRecord.valid_date.is_(None)
        else:
            valid_date_clause = CachedRecord.valid_date == record.valid_date

        result = await self.session.execute(
            select(CachedRecord).where(
                CachedRecord.category == record.category,
                CachedRecord.key == record.key,
                valid_date_clause,
            )
        )
        existing = result.scalars().first()

        if existing is None:
            return await self.insert_versioned(record)

        existing.payload = record.payload
        existing.issue_date = record.issue_date
        existing.last_update = record.last_update
        existing.expires_at = record.expires_at
        await self.session.flush()
        return existing

    async def insert_versioned(self, record: CachedRecord) -> CachedRecord:
        """
        Insert a new row without touching earlier rows for the key.

        Args:
            record: Transient CachedRecord

        Returns:
            The persisted CachedRecord with its id
        """
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def delete_by_key(self, category: str, key: str) -> int:
        """
        Delete every record for a key.

        Returns:
            Number of deleted rows
        """
        result = await self.session.execute(
            delete(CachedRecord).where(
                CachedRecord.category == category,
                CachedRecord.key == key,
            )
        )
        return result.rowcount

    async def delete_by_id(self, record_id: int) -> bool:
        """
        Delete one record by id.

        Returns:
            True if deleted, False if not found
        """
        result = await self.session.execute(
            delete(CachedRecord).where(CachedRecord.id == record_id)
        )
        return result.rowcount > 0

    async def delete_where(self, category: str, record_filter: RecordFilter) -> int:
        """
        Delete the records of a category matching every condition of the filter.

        Returns:
            Number of deleted rows
        """
        if record_filter.is_empty():
            raise ValueError("delete_where requires at least one condition")

        result = await self.session.execute(
            delete(CachedRecord).where(
                CachedRecord.category == category,
                *self._conditions(record_filter),
            )
        )
        return result.rowcount

    @staticmethod
    def _conditions(record_filter: RecordFilter) -> List[Any]:
        conditions = []
        if record_filter.key is not None:
            conditions.append(CachedRecord.key == record_filter.key)
        if record_filter.updated_before is not None:
            conditions.append(CachedRecord.last_update < record_filter.updated_before)
        if record_filter.updated_after is not None:
            conditions.append(CachedRecord.last_update > record_filter.updated_after)
        if record_filter.valid_before is not None:
            conditions.append(CachedRecord.valid_date < record_filter.valid_before)
        if record_filter.expires_before is not None:
            conditions.append(CachedRecord.expires_at <= record_filter.expires_before)
        return conditions

    async def list_latest_per_key(
        self,
        category: str,
        keys: Optional[Sequence[str]] = None
    ) -> List[CachedRecord]:
        """
        Get the latest record of each key, newest first.

        Args:
            category: Data category
            keys: Restrict to these keys (all keys when None)
        """
        query = (
            select(CachedRecord)
            .where(CachedRecord.category == category)
            .distinct(CachedRecord.key)
            .order_by(CachedRecord.key, CachedRecord.last_update.desc(), CachedRecord.id.desc())
        )
        if keys is not None:
            query = query.where(CachedRecord.key.in_(list(keys)))

        result = await self.session.execute(query)
        records = list(result.scalars().all())
        return sorted(records, key=lambda r: r.last_update, reverse=True)

    async def list_history(
        self,
        category: str,
        key: str,
        since: Optional[date] = None,
        until: Optional[date] = None,
        limit: int = 30
    ) -> List[CachedRecord]:
        """
        Get the records of one key issued within [since, until], latest issue first.

        Records without an issue date count as issued on the day of their last update.
        """
        issued_on = func.coalesce(CachedRecord.issue_date, cast(CachedRecord.last_update, Date))
        query = select(CachedRecord).where(
            CachedRecord.category == category,
            CachedRecord.key == key,
        )
        if since is not None:
            query = query.where(issued_on >= since)
        if until is not None:
            query = query.where(issued_on <= until)

        result = await self.session.execute(
            query.order_by(
                issued_on.desc(), CachedRecord.last_update.desc(), CachedRecord.id.desc()
            ).limit(limit)
        )
        return list(result.scalars().all())

    async def key_statistics(self, category: str) -> List[Any]:
        """
        Aggregate the records of a category per key.

        Returns:
            Rows of (key, count, latest_update, latest_valid_date)
        """
        result = await self.session.execute(
            select(
                CachedRecord.key,
                func.count(CachedRecord.id).label("count"),
                func.max(CachedRecord.last_update).label("latest_update"),
                func.max(CachedRecord.valid_date).label("latest_valid_date"),
            )
            .where(CachedRecord.category == category)
            .group_by(CachedRecord.key)
            .order_by(CachedRecord.key)
        )
        return list(result.all())
