"""
Upstream forecast providers.
"""
from .base import ForecastProvider, ProviderType, UpstreamPayload
from .manager import ProviderManager, create_provider_manager
from .stub import StubProvider

__all__ = [
    "ForecastProvider",
    "ProviderManager",
    "ProviderType",
    "StubProvider",
    "UpstreamPayload",
    "create_provider_manager",
]
