"""
Base interfaces for upstream forecast providers.

Every provider exposes the same fetch(category, key) contract, so the
freshness cache behaves identically whether upstream is AEMET or the stub.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, FrozenSet, Optional


class ProviderType(Enum):
    """Supported upstream providers."""
    STUB = "stub"
    AEMET = "aemet"


@dataclass
class UpstreamPayload:
    """
    Raw upstream result.

    Attributes:
        data: JSON-serializable payload, opaque to the cache
        source: Label reported to clients (mock-data, live)
        valid_date: Calendar day a forecast applies to
        issue_date: Issue date of a report
    """
    data: Any
    source: str
    valid_date: Optional[date] = None
    issue_date: Optional[date] = None


class ForecastProvider(ABC):
    """
    Abstract base class for upstream forecast providers.

    Implementations raise UpstreamUnavailable (or one of its subclasses) when
    they cannot produce a payload; they never return None.
    """

    @property
    @abstractmethod
    def provider_type(self) -> ProviderType:
        """Return the provider type identifier."""
        pass

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Source label attached to fresh results."""
        pass

    @property
    @abstractmethod
    def supported_categories(self) -> FrozenSet[str]:
        """Categories this provider can fetch."""
        pass

    @abstractmethod
    async def fetch(self, category: str, key: str) -> UpstreamPayload:
        """
        Fetch the current payload for a key.

        Args:
            category: Data category value (e.g. "mountain-forecast")
            key: Category-shaped key (zone name, municipality id, area code)

        Returns:
            UpstreamPayload with the fetched data

        Raises:
            UpstreamUnavailable: When the data cannot be obtained
        """
        pass

    def supports(self, category: str) -> bool:
        return category in self.supported_categories

    async def close(self) -> None:
        """Release network resources."""
        pass
