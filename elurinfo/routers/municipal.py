"""
Municipal forecast router.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from elurinfo.cache.categories import DataCategory
from elurinfo.cache.freshness import CacheLookup, FreshnessCache
from elurinfo.catalog import MUNICIPALITIES, municipalities_in_zone, resolve_municipality
from elurinfo.models.responses import (
    CacheEnvelope,
    KeyStatisticsModel,
    RefreshRequest,
    StatsEnvelope,
    ZoneEnvelope,
)

from .dependencies import get_cache, isoformat, require_lookup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/municipio", tags=["municipal"])

CATEGORY = DataCategory.MUNICIPAL_FORECAST


def forecast_view(lookup: CacheLookup) -> Dict[str, Any]:
    municipality = MUNICIPALITIES[lookup.record.key]
    return {
        "id": lookup.record.id,
        "municipality_id": municipality.id,
        "municipality_name": municipality.name,
        "valid_date": isoformat(lookup.record.valid_date),
        "last_update": isoformat(lookup.last_update),
        "forecast_data": lookup.payload,
        "municipality_info": municipality.to_dict(),
    }


@router.get("", response_model=CacheEnvelope)
async def get_all_forecasts(cache: FreshnessCache = Depends(get_cache)) -> CacheEnvelope:
    """Latest forecast of every configured municipality."""
    lookups = await cache.get_many(CATEGORY, list(MUNICIPALITIES.keys()))
    logger.info(f"Serving {len(lookups)} municipal forecasts")
    return CacheEnvelope.from_lookups(lookups, [forecast_view(lookup) for lookup in lookups])


@router.get("/zone/{zone}", response_model=ZoneEnvelope)
async def get_zone_forecasts(zone: str, cache: FreshnessCache = Depends(get_cache)) -> ZoneEnvelope:
    """Municipalities of one zone with their stored forecasts."""
    municipalities = municipalities_in_zone(zone)
    if not municipalities:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No se encontraron municipios para la zona: {zone}",
        )

    lookups = await cache.stored(CATEGORY, [m.id for m in municipalities])
    logger.info(
        f"Serving {len(lookups)} stored forecasts for {len(municipalities)} municipalities in {municipalities[0].zone}"
    )
    return ZoneEnvelope(
        data={
            "zone": municipalities[0].zone,
            "municipalities": [{"id": m.id, **m.to_dict()} for m in municipalities],
            "forecasts": [forecast_view(lookup) for lookup in lookups],
        },
        summary={
            "municipalityCount": len(municipalities),
            "forecastCount": len(lookups),
        },
    )


@router.get("/stats", response_model=StatsEnvelope)
async def get_statistics(cache: FreshnessCache = Depends(get_cache)) -> StatsEnvelope:
    """Per-municipality forecast statistics and coverage of the configured list."""
    data = []
    for stats in await cache.statistics(CATEGORY):
        municipality = MUNICIPALITIES.get(stats.key)
        item = KeyStatisticsModel.from_stats(stats).model_dump(mode="json")
        item["municipality_id"] = stats.key
        item["municipality_name"] = municipality.name if municipality else None
        item["zone"] = municipality.zone if municipality else None
        data.append(item)
    data.sort(key=lambda item: item["municipality_name"] or "")

    zones = dict.fromkeys(m.zone for m in MUNICIPALITIES.values())
    configured = len(MUNICIPALITIES)
    summary = {
        "totalMunicipalities": len(data),
        "configuredMunicipalities": configured,
        "coverage": round(len(data) * 100 / configured) if configured else 0,
        "byZone": {zone: sum(1 for item in data if item["zone"] == zone) for zone in zones},
    }
    return StatsEnvelope(data=data, summary=summary)


@router.post("/refresh", response_model=CacheEnvelope)
async def refresh_forecasts(
    request: Optional[RefreshRequest] = Body(default=None),
    cache: FreshnessCache = Depends(get_cache),
) -> CacheEnvelope:
    """Force a refresh of one municipality, or of all of them when no key is given."""
    if request is not None and request.key:
        municipality = resolve_municipality(request.key)
        lookup = require_lookup(
            await cache.refresh(CATEGORY, municipality.id),
            f"el municipio {municipality.name}",
        )
        return CacheEnvelope.from_lookup(lookup, forecast_view(lookup))

    lookups = []
    for municipality_id in MUNICIPALITIES:
        lookup = await cache.refresh(CATEGORY, municipality_id)
        if lookup is not None:
            lookups.append(lookup)
    logger.info(f"Refreshed {len(lookups)} municipal forecasts")
    return CacheEnvelope.from_lookups(lookups, [forecast_view(lookup) for lookup in lookups])


@router.get("/{municipality_id}", response_model=CacheEnvelope)
async def get_forecast(municipality_id: str, cache: FreshnessCache = Depends(get_cache)) -> CacheEnvelope:
    """Forecast of one municipality."""
    municipality = resolve_municipality(municipality_id)
    lookup = require_lookup(
        await cache.get(CATEGORY, municipality.id),
        f"el municipio {municipality.name}",
    )
    logger.info(f"Serving municipal forecast for {municipality.name} ({lookup.status.value})")
    return CacheEnvelope.from_lookup(lookup, forecast_view(lookup))
