"""
AEMET OpenData provider.

AEMET answers every request in two steps: the API returns a descriptor
(descripcion, estado, datos, metadatos) whose "datos" field is a temporary
URL holding the real payload.
"""

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, Optional
from zoneinfo import ZoneInfo

import httpx

from elurinfo.catalog import AEMET_MOUNTAIN_AREAS, MUNICIPALITIES, SNOW_SCIENCE_AREAS
from elurinfo.exceptions import (
    UpstreamAuthError,
    UpstreamNotFound,
    UpstreamRateLimited,
    UpstreamReason,
    UpstreamUnavailable,
)

from ..base import ForecastProvider, ProviderType, UpstreamPayload

logger = logging.getLogger(__name__)


class AemetProvider(ForecastProvider):
    """
    AEMET OpenData implementation of ForecastProvider.

    Serves mountain forecasts, municipal forecasts and nivological
    (snow-science) reports. Requires AEMET_API_KEY.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://opendata.aemet.es/opendata/api",
        timeout: float = 10.0,
        data_timeout: float = 15.0,
        timezone_name: str = "Europe/Madrid",
        client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize AEMET provider.

        Args:
            api_key: AEMET OpenData API key
            base_url: API base URL
            timeout: Timeout of the descriptor request in seconds
            data_timeout: Timeout of the data request in seconds
            timezone_name: Timezone deciding the forecast day
            client: Optional preconfigured httpx client

        Raises:
            ValueError: If the API key is not configured
        """
        if not api_key:
            raise ValueError(
                "AEMET_API_KEY is required for the AEMET provider. Please set it in environment or .env file"
            )

        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._data_timeout = data_timeout
        self._tz = ZoneInfo(timezone_name)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": "ElurInfo/1.0"}
        )

        logger.info("AEMET provider initialized successfully")

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.AEMET

    @property
    def source_name(self) -> str:
        return "live"

    @property
    def supported_categories(self) -> FrozenSet[str]:
        return frozenset({
            "mountain-forecast",
            "municipal-forecast",
            "snow-science-report",
        })

    def _today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    async def fetch(self, category: str, key: str) -> UpstreamPayload:
        if category == "mountain-forecast":
            return await self._mountain(key)
        if category == "municipal-forecast":
            return await self._municipal(key)
        if category == "snow-science-report":
            return await self._snow_science(key)

        raise UpstreamUnavailable(
            f"AEMET provider does not serve {category}",
            reason=UpstreamReason.UNSUPPORTED,
        )

    async def _mountain(self, zone: str) -> UpstreamPayload:
        area_code = AEMET_MOUNTAIN_AREAS.get(zone)
        if area_code is None:
            raise UpstreamNotFound(f"No AEMET mountain area for zone {zone}", upstream_status=None)

        data = await self.fetch_endpoint(f"prediccion/especifica/montaña/pasada/area/{area_code}/dia/0")
        return UpstreamPayload(data=data, source=self.source_name, valid_date=self._today())

    async def _municipal(self, municipality_id: str) -> UpstreamPayload:
        if municipality_id not in MUNICIPALITIES:
            raise UpstreamNotFound(f"Unknown municipality {municipality_id}", upstream_status=None)

        data = await self.fetch_endpoint(f"prediccion/especifica/municipio/diaria/{municipality_id}")
        return UpstreamPayload(data=data, source=self.source_name, valid_date=self._today())

    async def _snow_science(self, area: str) -> UpstreamPayload:
        area_name = SNOW_SCIENCE_AREAS.get(area)
        if area_name is None:
            raise UpstreamNotFound(f"Unknown nivological area {area}", upstream_status=None)

        datos = await self.fetch_endpoint(f"prediccion/especifica/nivologica/{area}", allow_text=True)
        logger.info(f"✅ Nivological data fetched for {area_name}")
        return UpstreamPayload(
            data={
                "area": area_name,
                "areaCode": int(area),
                "fecha": self._clock().isoformat(),
                "datos": datos,
            },
            source=self.source_name,
            issue_date=self._today(),
        )

    async def fetch_endpoint(self, path: str, allow_text: bool = False) -> Any:
        """
        Run the two-step AEMET request for an API path.

        Args:
            path: Path below the base URL
            allow_text: Return the data body as text when it is not JSON

        Returns:
            The decoded payload

        Raises:
            UpstreamUnavailable: On any failure, with the reason set
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        response = await self._get(url, self._timeout, headers={"api_key": self._api_key})

        try:
            descriptor: Dict[str, Any] = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(
                f"AEMET descriptor is not JSON: {e}", reason=UpstreamReason.MALFORMED
            ) from e

        if not isinstance(descriptor, dict):
            raise UpstreamUnavailable("AEMET descriptor is not an object", reason=UpstreamReason.MALFORMED)

        estado = descriptor.get("estado")
        if estado != 200:
            self._raise_for_status(estado, descriptor.get("descripcion") or "AEMET error")

        data_url = descriptor.get("datos")
        if not data_url:
            raise UpstreamUnavailable("AEMET descriptor has no data URL", reason=UpstreamReason.MALFORMED)

        data_response = await self._get(data_url, self._data_timeout)
        text = self._decode(data_response.content)

        try:
            return json.loads(text)
        except ValueError as e:
            if allow_text:
                return text
            raise UpstreamUnavailable(
                f"AEMET data is not JSON: {e}", reason=UpstreamReason.MALFORMED
            ) from e

    async def _get(self, url: str, timeout: float, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        try:
            response = await self._client.get(url, headers=headers, timeout=timeout)
        except httpx.TimeoutException as e:
            logger.warning(f"⏱️ AEMET request timed out: {url}")
            raise UpstreamUnavailable(f"AEMET timeout: {e}", reason=UpstreamReason.TIMEOUT) from e
        except httpx.HTTPError as e:
            logger.error(f"AEMET API error: {e}")
            raise UpstreamUnavailable(f"AEMET network error: {e}", reason=UpstreamReason.NETWORK) from e

        if response.status_code != 200:
            self._raise_for_status(response.status_code, response.reason_phrase or "AEMET error")

        return response

    @staticmethod
    def _raise_for_status(status: Any, message: str) -> None:
        if status == 401:
            logger.error("Authentication failed - check AEMET API key")
            raise UpstreamAuthError(message)
        if status == 404:
            logger.error("AEMET data not found for the requested key")
            raise UpstreamNotFound(message)
        if status == 429:
            logger.error("Rate limit exceeded for AEMET API")
            raise UpstreamRateLimited(message)

        upstream_status = status if isinstance(status, int) else None
        raise UpstreamUnavailable(
            f"AEMET returned status {status}: {message}",
            reason=UpstreamReason.BAD_STATUS,
            upstream_status=upstream_status,
        )

    @staticmethod
    def _decode(content: bytes) -> str:
        # AEMET data files are often Latin-9 encoded
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError:
            return content.decode("iso-8859-15")

    async def check_health(self) -> bool:
        """Check that the AEMET API answers with our key."""
        try:
            response = await self._client.get(
                f"{self._base_url}/prediccion/especifica/nivologica/0",
                headers={"api_key": self._api_key},
                timeout=5.0,
            )
        except httpx.HTTPError as e:
            logger.error(f"AEMET API health check failed: {e}")
            return False

        if response.status_code != 200:
            return False
        try:
            descriptor = response.json()
        except ValueError:
            return False
        return isinstance(descriptor, dict) and descriptor.get("estado") == 200

    async def close(self):
        """Close HTTP client."""
        await self._client.aclose()
