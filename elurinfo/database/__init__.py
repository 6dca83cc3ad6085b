"""
Database layer: async engine, models and repositories.
"""
from elurinfo.database.connection import (
    Base,
    check_connection,
    close_db,
    create_db_engine,
    create_session_maker,
    init_db,
    session_scope,
)

__all__ = [
    "Base",
    "check_connection",
    "close_db",
    "create_db_engine",
    "create_session_maker",
    "init_db",
    "session_scope",
]
