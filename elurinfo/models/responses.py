"""
Response envelopes shared by the category routers.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from elurinfo.cache.freshness import CacheLookup
from elurinfo.cache.store import KeyStatistics

from .base import APIBaseModel, UTCDatetime

MOCK_DATA_MESSAGE = "Datos de prueba - Integración con AEMET pendiente"
DEGRADED_MESSAGE = "Datos no actualizados: el proveedor meteorológico no está disponible"


def _message_for(lookups: List[CacheLookup]) -> Optional[str]:
    if any(not lookup.valid for lookup in lookups):
        return DEGRADED_MESSAGE
    if any(lookup.source == "mock-data" and not lookup.cached for lookup in lookups):
        return MOCK_DATA_MESSAGE
    return None


class CacheEnvelope(APIBaseModel):
    """
    Envelope of every cache-backed response.

    cached is false only for data fetched during this request; valid is
    false when stale data is served because upstream failed.
    """
    success: bool = True
    data: Any
    cached: bool
    valid: bool
    last_update: Optional[UTCDatetime] = Field(default=None, alias="lastUpdate")
    source: str
    count: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def from_lookup(cls, lookup: CacheLookup, data: Any) -> "CacheEnvelope":
        return cls(
            data=data,
            cached=lookup.cached,
            valid=lookup.valid,
            last_update=lookup.last_update,
            source=lookup.source,
            message=_message_for([lookup]),
        )

    @classmethod
    def from_lookups(cls, lookups: List[CacheLookup], data: List[Any]) -> "CacheEnvelope":
        """Aggregate several lookups: cached/valid only if every item is."""
        if not lookups:
            return cls(data=data, cached=False, valid=False, source="database", count=0)

        fresh_sources = [lookup.source for lookup in lookups if not lookup.cached]
        return cls(
            data=data,
            cached=all(lookup.cached for lookup in lookups),
            valid=all(lookup.valid for lookup in lookups),
            last_update=max(lookup.last_update for lookup in lookups),
            source=fresh_sources[0] if fresh_sources else lookups[0].source,
            count=len(data),
            message=_message_for(lookups),
        )


class KeyStatisticsModel(APIBaseModel):
    key: str
    count: int
    latest_update: UTCDatetime
    latest_valid_date: Optional[date] = None

    @classmethod
    def from_stats(cls, stats: KeyStatistics) -> "KeyStatisticsModel":
        return cls(
            key=stats.key,
            count=stats.count,
            latest_update=stats.latest_update,
            latest_valid_date=stats.latest_valid_date,
        )


class StatsEnvelope(APIBaseModel):
    success: bool = True
    data: List[Any]
    summary: Dict[str, Any] = Field(default_factory=dict)
    source: str = "database"


class ZoneEnvelope(APIBaseModel):
    """Stored forecasts of every municipality in one zone."""
    success: bool = True
    data: Dict[str, Any]
    summary: Dict[str, Any] = Field(default_factory=dict)
    source: str = "database"


class ListEnvelope(APIBaseModel):
    """Plain list read from storage, without freshness flags."""
    success: bool = True
    data: List[Any]
    count: int
    source: str = "database"
    risk_level: Optional[int] = Field(default=None, alias="riskLevel")


class RefreshRequest(APIBaseModel):
    """Body of the POST .../refresh endpoints. No key refreshes every key."""
    key: Optional[str] = None


class SnowScienceRefreshRequest(RefreshRequest):
    """Snow-science refresh body. area (0 or 1) selects one area, as key does."""
    area: Optional[Union[int, str]] = None
