"""
SQLAlchemy models for ElurInfo.
"""
from elurinfo.database.models.cached_record import CachedRecord

__all__ = [
    "CachedRecord",
]
