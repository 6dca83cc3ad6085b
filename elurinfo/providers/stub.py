"""
Deterministic mock bulletins.

Used for every category when FORECAST_PROVIDER=stub, and for the categories
AEMET does not serve (avalanche reports) when FORECAST_PROVIDER=aemet.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, Optional
from zoneinfo import ZoneInfo

from elurinfo.catalog import AVALANCHE_ZONES, MOUNTAIN_ZONES, MUNICIPALITIES, SNOW_SCIENCE_AREAS
from elurinfo.exceptions import UpstreamNotFound

from .base import ForecastProvider, ProviderType, UpstreamPayload

logger = logging.getLogger(__name__)

AEMET_MOUNTAIN_URL = "https://www.aemet.es/es/eltiempo/prediccion/montana"

AVALANCHE_BULLETINS: Dict[str, Dict[str, Any]] = {
    "Pirineo Aragonés": {
        "risk_level": 2,
        "description": "Riesgo limitado de avalanchas. Precaución en pendientes pronunciadas orientadas al norte.",
    },
    "Pirineo Navarro": {
        "risk_level": 1,
        "description": "Riesgo débil de avalanchas. Condiciones generalmente estables.",
    },
    "Pirineo Catalán": {
        "risk_level": 2,
        "description": "Riesgo limitado de avalanchas. Placas de viento aisladas en cotas altas.",
    },
}

# (snow line, max temperatures, min temperatures, wind speed)
MOUNTAIN_CONDITIONS = {
    "Pirineo Aragonés": (1800, [2, 8], [-4, 2], 20),
    "Pirineo Navarro": (1600, [4, 10], [-2, 4], 15),
    "Pirineo Catalán": (1700, [3, 9], [-3, 3], 15),
}


class StubProvider(ForecastProvider):
    """Provider that builds plausible bulletins locally instead of calling AEMET."""

    def __init__(
        self,
        timezone_name: str = "Europe/Madrid",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._tz = ZoneInfo(timezone_name)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        logger.info("Stub forecast provider initialized")

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.STUB

    @property
    def source_name(self) -> str:
        return "mock-data"

    @property
    def supported_categories(self) -> FrozenSet[str]:
        return frozenset({
            "avalanche-report",
            "mountain-forecast",
            "municipal-forecast",
            "snow-science-report",
        })

    def _today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    async def fetch(self, category: str, key: str) -> UpstreamPayload:
        builders = {
            "avalanche-report": self._avalanche,
            "mountain-forecast": self._mountain,
            "municipal-forecast": self._municipal,
            "snow-science-report": self._snow_science,
        }
        builder = builders.get(category)
        if builder is None:
            raise UpstreamNotFound(f"Stub provider does not serve {category}", upstream_status=None)

        payload = builder(key)
        logger.debug(f"🧪 Stub {category} bulletin built for {key}")
        return payload

    def _avalanche(self, zone: str) -> UpstreamPayload:
        if zone not in AVALANCHE_ZONES:
            raise UpstreamNotFound(f"No avalanche bulletin for zone {zone}", upstream_status=None)

        bulletin = AVALANCHE_BULLETINS[zone]
        return UpstreamPayload(
            data={
                "zone": zone,
                "risk_level": bulletin["risk_level"],
                "description": bulletin["description"],
                "source_url": AEMET_MOUNTAIN_URL,
            },
            source=self.source_name,
        )

    def _mountain(self, zone: str) -> UpstreamPayload:
        if zone not in MOUNTAIN_ZONES:
            raise UpstreamNotFound(f"No mountain forecast for zone {zone}", upstream_status=None)

        today = self._today()
        snow_line, maxima, minima, wind_speed = MOUNTAIN_CONDITIONS[zone]
        return UpstreamPayload(
            data={
                "fecha": today.isoformat(),
                "zona": zone,
                "cota_nieve": snow_line,
                "temperaturas": {"maximas": maxima, "minimas": minima},
                "viento": {"direccion": "N", "velocidad": wind_speed},
                "cielo": "Poco nuboso",
                "precipitacion": "Débil",
                "visibilidad": "Buena",
                "descripcion": f"Condiciones estables en {zone}. Cielo poco nuboso con temperaturas en descenso.",
            },
            source=self.source_name,
            valid_date=today,
        )

    def _municipal(self, municipality_id: str) -> UpstreamPayload:
        municipality = MUNICIPALITIES.get(municipality_id)
        if municipality is None:
            raise UpstreamNotFound(f"No municipal forecast for {municipality_id}", upstream_status=None)

        today = self._today()
        aragon = municipality.zone == "Pirineo Aragonés"
        return UpstreamPayload(
            data={
                "nombre": municipality.name,
                "provincia": municipality.province,
                "fecha": today.isoformat(),
                "prediccion": {
                    "dia": {
                        "estadoCielo": {"descripcion": "Poco nuboso", "value": "13"},
                        "precipitacion": {"descripcion": "No significativa", "value": "0"},
                        "probPrecipitacion": [0, 5, 10, 0],
                        "cotaNieveProv": 1800,
                        "temperatura": {"maxima": 8 if aragon else 10, "minima": -2 if aragon else 0},
                        "sensTermica": {"maxima": 6 if aragon else 8, "minima": -4 if aragon else -2},
                        "humedadRelativa": {"maxima": 85, "minima": 45},
                        "viento": [
                            {"direccion": "N", "velocidad": 15, "periodo": "00-06"},
                            {"direccion": "NE", "velocidad": 10, "periodo": "06-12"},
                            {"direccion": "E", "velocidad": 8, "periodo": "12-18"},
                            {"direccion": "SE", "velocidad": 12, "periodo": "18-24"},
                        ],
                    }
                },
                "elaborado": self._clock().isoformat(),
                "descripcion": (
                    f"Predicción para {municipality.name}. "
                    "Día con cielo poco nuboso y temperaturas estables."
                ),
            },
            source=self.source_name,
            valid_date=today,
        )

    def _snow_science(self, area: str) -> UpstreamPayload:
        area_name = SNOW_SCIENCE_AREAS.get(area)
        if area_name is None:
            raise UpstreamNotFound(f"No snow science report for area {area}", upstream_status=None)

        today = self._today()
        return UpstreamPayload(
            data={
                "area": area_name,
                "areaCode": int(area),
                "fecha": self._clock().isoformat(),
                "datos": {
                    "resumenSituacion": f"Manto nivoso estable en {area_name}.",
                    "peligroAludes": "Limitado (2) por encima de 2200 m.",
                    "evolucionManto": "Transformación lenta por el frío nocturno.",
                    "observaciones": "Datos de prueba",
                },
            },
            source=self.source_name,
            issue_date=today,
        )
