"""
Database connection configuration using SQLAlchemy 2.0 async.

The engine is built once at startup and handed to the record store; there is
no module-level engine.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from elurinfo.config.settings import Settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def create_db_engine(settings: Settings) -> AsyncEngine:
    """Create the shared async engine."""
    return create_async_engine(
        settings.database_url,
        pool_size=settings.postgres_pool_max_size,
        max_overflow=settings.postgres_pool_max_overflow,
        pool_pre_ping=True,  # Verify connections before using them
        echo=False,  # Set to True for SQL debugging
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for one unit of work.

    Usage:
        async with session_scope(session_maker) as session:
            result = await session.execute(select(Model))
    """
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize the database by creating all tables.
    Should be called on application startup.
    """
    # Register the models on Base.metadata
    from elurinfo.database import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_connection(engine: AsyncEngine) -> None:
    """Run a trivial query, raising if the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db(engine: AsyncEngine) -> None:
    """
    Close the database connection pool.
    Should be called on application shutdown.
    """
    await engine.dispose()
