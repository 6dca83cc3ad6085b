"""
Repository pattern implementations for database operations.
"""
from elurinfo.database.repositories.cached_record import CachedRecordRepository

__all__ = [
    "CachedRecordRepository",
]
