"""
Avalanche bulletin router.

Bulletins are cached for CACHE_AVALANCHE_HOURS and replaced per zone.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from elurinfo.cache.categories import DataCategory
from elurinfo.cache.freshness import CacheLookup, FreshnessCache
from elurinfo.catalog import AVALANCHE_ZONES, resolve_zone
from elurinfo.models.responses import (
    CacheEnvelope,
    KeyStatisticsModel,
    ListEnvelope,
    RefreshRequest,
    StatsEnvelope,
)

from .dependencies import get_cache, isoformat, require_lookup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/avalancha", tags=["avalanche"])

CATEGORY = DataCategory.AVALANCHE_REPORT


def _risk_level(payload: Any) -> Optional[int]:
    if isinstance(payload, dict) and isinstance(payload.get("risk_level"), int):
        return payload["risk_level"]
    return None


def bulletin_view(lookup: CacheLookup) -> Dict[str, Any]:
    payload = lookup.payload if isinstance(lookup.payload, dict) else {"data": lookup.payload}
    return {
        "id": lookup.record.id,
        **payload,
        "zone": lookup.record.key,
        "last_update": isoformat(lookup.last_update),
    }


@router.get("", response_model=CacheEnvelope)
async def get_all_bulletins(cache: FreshnessCache = Depends(get_cache)) -> CacheEnvelope:
    """Latest avalanche bulletin of every zone."""
    lookups = await cache.get_many(CATEGORY, AVALANCHE_ZONES)
    logger.info(f"Serving {len(lookups)} avalanche bulletins")
    return CacheEnvelope.from_lookups(lookups, [bulletin_view(lookup) for lookup in lookups])


@router.get("/zone/{zone}", response_model=CacheEnvelope)
async def get_zone_bulletin(zone: str, cache: FreshnessCache = Depends(get_cache)) -> CacheEnvelope:
    """Avalanche bulletin of one zone."""
    key = resolve_zone(CATEGORY.value, zone)
    lookup = require_lookup(await cache.get(CATEGORY, key), f"la zona: {key}")
    return CacheEnvelope.from_lookup(lookup, bulletin_view(lookup))


@router.get("/risk/{level}", response_model=ListEnvelope)
async def get_by_risk_level(level: str, cache: FreshnessCache = Depends(get_cache)) -> ListEnvelope:
    """Stored bulletins with the given risk level (1-5)."""
    try:
        risk_level = int(level)
    except ValueError:
        risk_level = 0
    if not 1 <= risk_level <= 5:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nivel de riesgo debe ser un número entre 1 y 5",
        )

    lookups = [
        lookup for lookup in await cache.stored(CATEGORY)
        if _risk_level(lookup.payload) == risk_level
    ]
    data = [bulletin_view(lookup) for lookup in lookups]
    return ListEnvelope(data=data, count=len(data), risk_level=risk_level)


@router.get("/stats", response_model=StatsEnvelope)
async def get_statistics(cache: FreshnessCache = Depends(get_cache)) -> StatsEnvelope:
    """Per-zone statistics with the latest stored risk level."""
    latest_risk = {
        lookup.record.key: _risk_level(lookup.payload)
        for lookup in await cache.stored(CATEGORY)
    }

    data = []
    for stats in await cache.statistics(CATEGORY):
        item = KeyStatisticsModel.from_stats(stats).model_dump(mode="json")
        item["zone"] = stats.key
        item["latest_risk"] = latest_risk.get(stats.key)
        data.append(item)

    risks = [item["latest_risk"] for item in data if item["latest_risk"] is not None]
    summary = {
        "totalZones": len(data),
        "averageRisk": round(sum(risks) / len(risks), 1) if risks else 0,
    }
    return StatsEnvelope(data=data, summary=summary)


@router.post("/refresh", response_model=CacheEnvelope)
async def refresh_bulletins(
    request: Optional[RefreshRequest] = Body(default=None),
    cache: FreshnessCache = Depends(get_cache),
) -> CacheEnvelope:
    """Force a refresh of one zone, or of every zone when no key is given."""
    if request is not None and request.key:
        key = resolve_zone(CATEGORY.value, request.key)
        lookup = require_lookup(await cache.refresh(CATEGORY, key), f"la zona: {key}")
        return CacheEnvelope.from_lookup(lookup, bulletin_view(lookup))

    lookups = []
    for zone in AVALANCHE_ZONES:
        lookup = await cache.refresh(CATEGORY, zone)
        if lookup is not None:
            lookups.append(lookup)
    logger.info(f"Refreshed {len(lookups)} avalanche bulletins")
    return CacheEnvelope.from_lookups(lookups, [bulletin_view(lookup) for lookup in lookups])
