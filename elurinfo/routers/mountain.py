"""
Mountain forecast router.

Forecasts are cached for CACHE_MOUNTAIN_HOURS and expire once their
valid date is in the past.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from elurinfo.cache.categories import DataCategory
from elurinfo.cache.freshness import CacheLookup, FreshnessCache
from elurinfo.catalog import AEMET_MOUNTAIN_AREAS, MOUNTAIN_ZONES, resolve_zone
from elurinfo.models.responses import (
    CacheEnvelope,
    KeyStatisticsModel,
    ListEnvelope,
    RefreshRequest,
    StatsEnvelope,
)

from .dependencies import get_cache, isoformat, require_lookup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/montana", tags=["mountain"])

CATEGORY = DataCategory.MOUNTAIN_FORECAST


def forecast_view(lookup: CacheLookup) -> Dict[str, Any]:
    return {
        "id": lookup.record.id,
        "zone": lookup.record.key,
        "valid_date": isoformat(lookup.record.valid_date),
        "last_update": isoformat(lookup.last_update),
        "forecast_data": lookup.payload,
    }


@router.get("", response_model=CacheEnvelope)
async def get_all_forecasts(cache: FreshnessCache = Depends(get_cache)) -> CacheEnvelope:
    """Latest forecast of every mountain zone."""
    lookups = await cache.get_many(CATEGORY, MOUNTAIN_ZONES)
    logger.info(f"Serving {len(lookups)} mountain forecasts")
    return CacheEnvelope.from_lookups(lookups, [forecast_view(lookup) for lookup in lookups])


@router.get("/zones", response_model=ListEnvelope)
async def list_zones(cache: FreshnessCache = Depends(get_cache)) -> ListEnvelope:
    """Configured zones and whether data is stored for them."""
    stats = {s.key: s for s in await cache.statistics(CATEGORY)}
    data = []
    for zone in MOUNTAIN_ZONES:
        stat = stats.get(zone)
        data.append({
            "zone": zone,
            "aemetArea": AEMET_MOUNTAIN_AREAS.get(zone),
            "hasData": stat is not None,
            "forecastCount": stat.count if stat else 0,
            "latestForecast": isoformat(stat.latest_valid_date) if stat else None,
        })
    return ListEnvelope(data=data, count=len(data))


@router.get("/zone/{zone}", response_model=CacheEnvelope)
async def get_zone_forecast(zone: str, cache: FreshnessCache = Depends(get_cache)) -> CacheEnvelope:
    """Forecast of one mountain zone."""
    key = resolve_zone(CATEGORY.value, zone)
    lookup = require_lookup(await cache.get(CATEGORY, key), f"la zona: {key}")
    return CacheEnvelope.from_lookup(lookup, forecast_view(lookup))


@router.get("/stats", response_model=StatsEnvelope)
async def get_statistics(cache: FreshnessCache = Depends(get_cache)) -> StatsEnvelope:
    """Per-zone forecast statistics."""
    data = [
        KeyStatisticsModel.from_stats(stats).model_dump(mode="json")
        for stats in await cache.statistics(CATEGORY)
    ]
    summary = {
        "totalZones": len(data),
        "totalForecasts": sum(item["count"] for item in data),
    }
    return StatsEnvelope(data=data, summary=summary)


@router.post("/refresh", response_model=CacheEnvelope)
async def refresh_forecasts(
    request: Optional[RefreshRequest] = Body(default=None),
    cache: FreshnessCache = Depends(get_cache),
) -> CacheEnvelope:
    """Force a refresh of one zone, or of every zone when no key is given."""
    if request is not None and request.key:
        key = resolve_zone(CATEGORY.value, request.key)
        lookup = require_lookup(await cache.refresh(CATEGORY, key), f"la zona: {key}")
        return CacheEnvelope.from_lookup(lookup, forecast_view(lookup))

    lookups = []
    for zone in MOUNTAIN_ZONES:
        lookup = await cache.refresh(CATEGORY, zone)
        if lookup is not None:
            lookups.append(lookup)
    logger.info(f"Refreshed {len(lookups)} mountain forecasts")
    return CacheEnvelope.from_lookups(lookups, [forecast_view(lookup) for lookup in lookups])
