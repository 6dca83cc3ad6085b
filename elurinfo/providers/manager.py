"""
Provider management and factory functions.

Routes each category to the provider that serves it: the configured primary
provider when it supports the category, the stub provider otherwise.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from elurinfo.config.settings import Settings
from elurinfo.exceptions import UpstreamReason, UpstreamUnavailable

from .base import ForecastProvider, ProviderType, UpstreamPayload
from .stub import StubProvider

logger = logging.getLogger(__name__)


class ProviderManager:
    """
    Holds the provider instances and picks one per category.
    """

    def __init__(self, primary: ForecastProvider, fallback: Optional[ForecastProvider] = None):
        """
        Initialize the provider manager.

        Args:
            primary: Provider used for every category it supports
            fallback: Provider used for the remaining categories
        """
        self._primary = primary
        self._fallback = fallback

    @property
    def primary(self) -> ForecastProvider:
        return self._primary

    def providers(self) -> List[ForecastProvider]:
        return [p for p in (self._primary, self._fallback) if p is not None]

    def provider_for(self, category: str) -> Optional[ForecastProvider]:
        """Return the provider serving a category, or None."""
        for provider in self.providers():
            if provider.supports(category):
                return provider
        return None

    async def fetch(self, category: str, key: str) -> UpstreamPayload:
        """
        Fetch from the provider serving the category.

        Raises:
            UpstreamUnavailable: If no provider serves the category or the fetch fails
        """
        provider = self.provider_for(category)
        if provider is None:
            raise UpstreamUnavailable(
                f"No provider serves {category}",
                reason=UpstreamReason.UNSUPPORTED,
            )
        return await provider.fetch(category, key)

    def get_stats(self) -> Dict[str, object]:
        """Describe the category routing."""
        categories = sorted({c for p in self.providers() for c in p.supported_categories})
        return {
            "primary": self._primary.provider_type.value,
            "routing": {c: self.provider_for(c).provider_type.value for c in categories},
        }

    async def close(self) -> None:
        for provider in self.providers():
            await provider.close()


def _provider_type(settings: Settings) -> ProviderType:
    provider_name = settings.forecast_provider.lower()
    try:
        return ProviderType(provider_name)
    except ValueError:
        available = [p.value for p in ProviderType]
        raise ValueError(
            f"Invalid provider '{provider_name}'. "
            f"Available providers: {', '.join(available)}"
        )


def create_provider_manager(
    settings: Settings,
    clock: Optional[Callable[[], datetime]] = None,
) -> ProviderManager:
    """
    Build the provider manager from settings.

    Args:
        settings: Application settings
        clock: Optional clock shared with the freshness cache

    Raises:
        ValueError: If the provider is unknown or AEMET has no API key
    """
    provider_type = _provider_type(settings)
    stub = StubProvider(timezone_name=settings.local_timezone, clock=clock)

    if provider_type == ProviderType.STUB:
        logger.info("Using stub forecast provider for every category")
        return ProviderManager(primary=stub)

    from .aemet import AemetProvider

    aemet = AemetProvider(
        api_key=settings.aemet_api_key,
        base_url=settings.aemet_base_url,
        timeout=settings.upstream_timeout_seconds,
        data_timeout=settings.upstream_data_timeout_seconds,
        timezone_name=settings.local_timezone,
        clock=clock,
    )
    logger.info("Using AEMET forecast provider, stub for unsupported categories")
    return ProviderManager(primary=aemet, fallback=stub)
