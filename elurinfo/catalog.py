"""
Known zones, municipalities and snow-science areas.

Lookups for keys outside these sets are rejected with UnknownKey before the
freshness cache is consulted.
"""
from dataclasses import dataclass
from typing import Dict, List
from urllib.parse import unquote

from elurinfo.exceptions import UnknownKey


@dataclass(frozen=True)
class Municipality:
    """A municipality served by the municipal forecast endpoints."""
    id: str
    name: str
    zone: str
    province: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "zone": self.zone, "province": self.province}


MOUNTAIN_ZONES: List[str] = [
    "Pirineo Aragonés",
    "Pirineo Navarro",
    "Pirineo Catalán",
]

AVALANCHE_ZONES: List[str] = list(MOUNTAIN_ZONES)

MUNICIPALITIES: Dict[str, Municipality] = {
    m.id: m for m in [
        # Pirineo Aragonés
        Municipality("22015", "Benasque", "Pirineo Aragonés", "Huesca"),
        Municipality("22040", "Canfranc", "Pirineo Aragonés", "Huesca"),
        Municipality("22178", "Panticosa", "Pirineo Aragonés", "Huesca"),
        Municipality("22242", "Torla-Ordesa", "Pirineo Aragonés", "Huesca"),
        # Pirineo Navarro
        Municipality("31174", "Isaba", "Pirineo Navarro", "Navarra"),
        Municipality("31175", "Ochagavía", "Pirineo Navarro", "Navarra"),
        Municipality("31246", "Roncal", "Pirineo Navarro", "Navarra"),
        Municipality("31269", "Burguete", "Pirineo Navarro", "Navarra"),
    ]
}

# AEMET nivological area codes
SNOW_SCIENCE_AREAS: Dict[str, str] = {
    "0": "Pirineo Catalán",
    "1": "Pirineo Navarro y Aragonés",
}

# AEMET mountain area codes per zone
AEMET_MOUNTAIN_AREAS: Dict[str, str] = {
    "Pirineo Aragonés": "arn1",
    "Pirineo Navarro": "nav1",
    "Pirineo Catalán": "cat1",
}


def _match_zone(zone: str, zones: List[str]) -> str:
    decoded = unquote(zone).strip()
    for known in zones:
        if known.casefold() == decoded.casefold():
            return known
    return ""


def resolve_zone(category: str, zone: str) -> str:
    """Return the canonical zone name or raise UnknownKey."""
    zones = AVALANCHE_ZONES if category == "avalanche-report" else MOUNTAIN_ZONES
    known = _match_zone(zone, zones)
    if not known:
        raise UnknownKey(category, zone)
    return known


def resolve_municipality(municipality_id: str) -> Municipality:
    municipality = MUNICIPALITIES.get(municipality_id.strip())
    if municipality is None:
        raise UnknownKey("municipal-forecast", municipality_id)
    return municipality


def municipalities_in_zone(zone: str) -> List[Municipality]:
    """Configured municipalities of a zone, matched case-insensitively."""
    decoded = unquote(zone).strip().casefold()
    return [m for m in MUNICIPALITIES.values() if m.zone.casefold() == decoded]


def resolve_area(area: str) -> str:
    area = area.strip()
    if area not in SNOW_SCIENCE_AREAS:
        raise UnknownKey("snow-science-report", area)
    return area


def keys_for(category: str) -> List[str]:
    """All configured keys for a category, in display order."""
    if category == "avalanche-report":
        return list(AVALANCHE_ZONES)
    if category == "mountain-forecast":
        return list(MOUNTAIN_ZONES)
    if category == "municipal-forecast":
        return list(MUNICIPALITIES.keys())
    if category == "snow-science-report":
        return list(SNOW_SCIENCE_AREAS.keys())
    return []


def resolve_key(category: str, key: str) -> str:
    """Validate a raw key for any catalogued category."""
    if category in ("avalanche-report", "mountain-forecast"):
        return resolve_zone(category, key)
    if category == "municipal-forecast":
        return resolve_municipality(key).id
    if category == "snow-science-report":
        return resolve_area(key)
    raise UnknownKey(category, key)
