"""
Snow science (nivological) report router.

Reports are append-only per area. Reads go through the short-lived front
entry first, then the stored reports, then AEMET.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from elurinfo.cache.categories import DataCategory
from elurinfo.cache.freshness import CacheLookup, FreshnessCache
from elurinfo.catalog import SNOW_SCIENCE_AREAS, resolve_area
from elurinfo.models.responses import (
    CacheEnvelope,
    KeyStatisticsModel,
    ListEnvelope,
    SnowScienceRefreshRequest,
    StatsEnvelope,
)

from .dependencies import get_cache, isoformat, require_lookup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snow-science", tags=["snow-science"])

CATEGORY = DataCategory.SNOW_SCIENCE_REPORT

INVALID_AREA_MESSAGE = (
    "Código de área no válido. Debe ser 0 (Pirineo Catalán) o 1 (Pirineo Navarro y Aragonés)"
)


def report_view(lookup: CacheLookup) -> Dict[str, Any]:
    payload = lookup.payload if isinstance(lookup.payload, dict) else {}
    area = lookup.record.key
    return {
        "id": lookup.record.id,
        "area": payload.get("area", SNOW_SCIENCE_AREAS.get(area)),
        "areaCode": int(area),
        "fechaElaboracion": isoformat(lookup.record.issue_date),
        "fechaActualizacion": isoformat(lookup.last_update),
        "datosCompletos": payload.get("datos", lookup.payload),
    }


@router.get("", response_model=CacheEnvelope)
async def get_all_reports(cache: FreshnessCache = Depends(get_cache)) -> CacheEnvelope:
    """Latest report of every area."""
    lookups = await cache.get_many(CATEGORY, list(SNOW_SCIENCE_AREAS.keys()))
    return CacheEnvelope.from_lookups(lookups, [report_view(lookup) for lookup in lookups])


@router.get("/stats", response_model=StatsEnvelope)
async def get_statistics(cache: FreshnessCache = Depends(get_cache)) -> StatsEnvelope:
    """Per-area report statistics."""
    data = []
    for stats in await cache.statistics(CATEGORY):
        item = KeyStatisticsModel.from_stats(stats).model_dump(mode="json")
        item["area"] = SNOW_SCIENCE_AREAS.get(stats.key)
        data.append(item)
    summary = {
        "totalAreas": len(data),
        "totalReports": sum(item["count"] for item in data),
    }
    return StatsEnvelope(data=data, summary=summary)


def _requested_area(request: Optional[SnowScienceRefreshRequest]) -> Optional[str]:
    if request is None:
        return None
    if request.area is not None:
        area = str(request.area).strip()
        if area not in SNOW_SCIENCE_AREAS:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_AREA_MESSAGE)
        return area
    if request.key:
        return resolve_area(request.key)
    return None


@router.post("/refresh", response_model=CacheEnvelope)
async def refresh_reports(
    request: Optional[SnowScienceRefreshRequest] = Body(default=None),
    cache: FreshnessCache = Depends(get_cache),
) -> CacheEnvelope:
    """Force a refresh of one area, or of both when no area is given."""
    area = _requested_area(request)
    if area is not None:
        lookup = require_lookup(await cache.refresh(CATEGORY, area), f"el área {area}")
        return CacheEnvelope.from_lookup(lookup, report_view(lookup))

    lookups = []
    for area in SNOW_SCIENCE_AREAS:
        lookup = await cache.refresh(CATEGORY, area)
        if lookup is not None:
            lookups.append(lookup)
    logger.info(f"Refreshed {len(lookups)} snow science reports")
    return CacheEnvelope.from_lookups(lookups, [report_view(lookup) for lookup in lookups])


@router.get("/{area}", response_model=CacheEnvelope)
async def get_report(area: str, cache: FreshnessCache = Depends(get_cache)) -> CacheEnvelope:
    """Latest report of one area (0: Pirineo Catalán, 1: Pirineo Navarro y Aragonés)."""
    area = resolve_area(area)
    lookup = require_lookup(await cache.get(CATEGORY, area), f"el área {area}")
    return CacheEnvelope.from_lookup(lookup, report_view(lookup))


@router.get("/{area}/history", response_model=ListEnvelope)
async def get_history(
    area: str,
    fecha_inicio: Optional[datetime] = Query(None, alias="fechaInicio"),
    fecha_fin: Optional[datetime] = Query(None, alias="fechaFin"),
    limit: int = Query(30, ge=1, le=365),
    cache: FreshnessCache = Depends(get_cache),
) -> ListEnvelope:
    """Stored reports of one area, last 30 days by default."""
    area = resolve_area(area)
    lookups = await cache.history(CATEGORY, area, since=fecha_inicio, until=fecha_fin, limit=limit)
    data = [report_view(lookup) for lookup in lookups]
    return ListEnvelope(data=data, count=len(data))
