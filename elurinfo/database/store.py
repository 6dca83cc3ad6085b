"""
PostgreSQL record store built on the CachedRecord repository.
"""
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncGenerator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from elurinfo.cache.store import KeyStatistics, RecordFilter, RecordStore, StoredRecord
from elurinfo.database.connection import check_connection, close_db, session_scope
from elurinfo.database.models.cached_record import CachedRecord
from elurinfo.database.repositories.cached_record import CachedRecordRepository
from elurinfo.exceptions import StorageFailure

logger = logging.getLogger(__name__)


def to_stored(row: CachedRecord) -> StoredRecord:
    return StoredRecord(
        id=row.id,
        category=row.category,
        key=row.key,
        payload=row.payload,
        valid_date=row.valid_date,
        issue_date=row.issue_date,
        last_update=row.last_update,
        expires_at=row.expires_at,
        created_at=row.created_at,
    )


def to_row(record: StoredRecord) -> CachedRecord:
    return CachedRecord(
        category=record.category,
        key=record.key,
        payload=record.payload,
        valid_date=record.valid_date,
        issue_date=record.issue_date,
        last_update=record.last_update,
        expires_at=record.expires_at,
    )


class SQLRecordStore(RecordStore):
    """
    RecordStore on PostgreSQL.

    Each operation runs in its own session and transaction. SQLAlchemy
    errors are raised as StorageFailure.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        self._session_maker = session_maker
        self._engine = engine

    @asynccontextmanager
    async def _repository(self, operation: str) -> AsyncGenerator[CachedRecordRepository, None]:
        try:
            async with session_scope(self._session_maker) as session:
                yield CachedRecordRepository(session)
        except SQLAlchemyError as e:
            logger.error(f"❌ Store operation '{operation}' failed: {e}")
            raise StorageFailure(f"Error de base de datos en {operation}") from e

    async def get_latest(self, category: str, key: str) -> Optional[StoredRecord]:
        async with self._repository("get_latest") as repo:
            row = await repo.get_latest(category, key)
            return to_stored(row) if row else None

    async def upsert_by_key(self, record: StoredRecord) -> StoredRecord:
        async with self._repository("upsert_by_key") as repo:
            row = await repo.upsert_by_key(to_row(record))
            return to_stored(row)

    async def insert_versioned(self, record: StoredRecord) -> StoredRecord:
        async with self._repository("insert_versioned") as repo:
            row = await repo.insert_versioned(to_row(record))
            return to_stored(row)

    async def delete_by_key(self, category: str, key: str) -> int:
        async with self._repository("delete_by_key") as repo:
            return await repo.delete_by_key(category, key)

    async def delete_record(self, record_id: int) -> bool:
        async with self._repository("delete_record") as repo:
            return await repo.delete_by_id(record_id)

    async def delete_where(self, category: str, record_filter: RecordFilter) -> int:
        async with self._repository("delete_where") as repo:
            return await repo.delete_where(category, record_filter)

    async def list_latest_per_key(
        self,
        category: str,
        keys: Optional[List[str]] = None
    ) -> List[StoredRecord]:
        async with self._repository("list_latest_per_key") as repo:
            rows = await repo.list_latest_per_key(category, keys)
            return [to_stored(row) for row in rows]

    async def list_history(
        self,
        category: str,
        key: str,
        since: Optional[date] = None,
        until: Optional[date] = None,
        limit: int = 30
    ) -> List[StoredRecord]:
        async with self._repository("list_history") as repo:
            rows = await repo.list_history(category, key, since, until, limit)
            return [to_stored(row) for row in rows]

    async def key_statistics(self, category: str) -> List[KeyStatistics]:
        async with self._repository("key_statistics") as repo:
            rows = await repo.key_statistics(category)
            return [
                KeyStatistics(
                    key=key,
                    count=count,
                    latest_update=latest_update,
                    latest_valid_date=latest_valid_date,
                )
                for key, count, latest_update, latest_valid_date in rows
            ]

    async def ping(self) -> bool:
        if self._engine is None:
            return True
        try:
            await check_connection(self._engine)
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"⚠️ Database ping failed: {e}")
            return False

    async def close(self) -> None:
        if self._engine is not None:
            await close_db(self._engine)
            logger.info("🔌 Database connection pool closed")
