"""
Startup wiring shared by the API and the CLI.

Everything is built explicitly here, once, and passed down; nothing is
initialized lazily on first request.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from elurinfo.cache.categories import build_policies
from elurinfo.cache.freshness import FreshnessCache
from elurinfo.cache.memory import InMemoryRecordStore
from elurinfo.cache.store import RecordStore
from elurinfo.config.settings import Settings
from elurinfo.providers.manager import ProviderManager

logger = logging.getLogger(__name__)


async def create_store(settings: Settings) -> RecordStore:
    """
    Build the record store selected by STORE_BACKEND.

    For postgres, creates the engine and the tables before returning.
    """
    backend = settings.store_backend.lower()

    if backend == "memory":
        logger.info("💾 Using in-memory record store")
        return InMemoryRecordStore()

    if backend != "postgres":
        raise ValueError(f"Invalid store backend '{backend}'. Available backends: postgres, memory")

    from elurinfo.database.connection import create_db_engine, create_session_maker, init_db
    from elurinfo.database.store import SQLRecordStore

    engine = create_db_engine(settings)
    await init_db(engine)
    logger.info(
        f"🐘 Connected to PostgreSQL at {settings.postgres_host}:{settings.postgres_port}/"
        f"{settings.postgres_database}"
    )
    return SQLRecordStore(create_session_maker(engine), engine=engine)


def create_cache(
    settings: Settings,
    store: RecordStore,
    providers: ProviderManager,
    clock: Optional[Callable[[], datetime]] = None,
) -> FreshnessCache:
    return FreshnessCache(
        store=store,
        provider=providers,
        policies=build_policies(settings),
        clock=clock,
        timezone_name=settings.local_timezone,
    )
