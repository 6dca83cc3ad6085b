"""
Pydantic models for API responses.
"""
from .base import APIBaseModel, UTCDatetime
from .responses import (
    CacheEnvelope,
    KeyStatisticsModel,
    ListEnvelope,
    RefreshRequest,
    SnowScienceRefreshRequest,
    StatsEnvelope,
    ZoneEnvelope,
)

__all__ = [
    "APIBaseModel",
    "CacheEnvelope",
    "KeyStatisticsModel",
    "ListEnvelope",
    "RefreshRequest",
    "SnowScienceRefreshRequest",
    "StatsEnvelope",
    "UTCDatetime",
    "ZoneEnvelope",
]
