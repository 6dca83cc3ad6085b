"""
Pytest configuration and shared fixtures.

Provides a frozen clock, a scripted upstream provider, an in-memory record
store, a freshness cache wired from them and API test clients over it.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from elurinfo.cache.categories import build_policies
from elurinfo.cache.freshness import FreshnessCache
from elurinfo.cache.memory import InMemoryRecordStore
from elurinfo.config.settings import Settings
from elurinfo.exceptions import UpstreamUnavailable
from elurinfo.main import create_app
from elurinfo.providers.base import UpstreamPayload
from elurinfo.providers.manager import ProviderManager
from elurinfo.providers.stub import StubProvider


class FrozenClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class ScriptedProvider:
    """
    Upstream double: returns queued payloads, or a default payload per key,
    and raises a queued error when one is set.
    """

    def __init__(self, source: str = "live"):
        self.source = source
        self.calls: List[Tuple[str, str]] = []
        self.responses: Dict[Tuple[str, str], List[Any]] = {}
        self.error: Optional[Exception] = None

    def queue(self, category: str, key: str, response: Any) -> None:
        self.responses.setdefault((category, key), []).append(response)

    def fail_with(self, error: Optional[Exception] = None) -> None:
        self.error = error or UpstreamUnavailable("upstream down")

    def recover(self) -> None:
        self.error = None

    async def fetch(self, category: str, key: str) -> UpstreamPayload:
        self.calls.append((category, key))
        if self.error is not None:
            raise self.error

        queued = self.responses.get((category, key))
        if queued:
            response = queued.pop(0)
            if isinstance(response, Exception):
                raise response
            if isinstance(response, UpstreamPayload):
                return response
            return UpstreamPayload(data=response, source=self.source)

        return UpstreamPayload(
            data={"key": key, "category": category, "fetch": len(self.calls)},
            source=self.source,
        )


# Thursday 15 January 2026, 11:00 in Madrid
NOW = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def settings():
    return Settings(_env_file=None, STORE_BACKEND="memory", FORECAST_PROVIDER="stub", SWEEP_ENABLED=False)


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def cache(store, provider, settings, clock):
    return FreshnessCache(
        store=store,
        provider=provider,
        policies=build_policies(settings),
        clock=clock,
        timezone_name="Europe/Madrid",
    )


@pytest.fixture
def stub_cache(store, settings, clock):
    """Cache backed by the stub provider, as with FORECAST_PROVIDER=stub."""
    return FreshnessCache(
        store=store,
        provider=ProviderManager(primary=StubProvider(clock=clock)),
        policies=build_policies(settings),
        clock=clock,
        timezone_name="Europe/Madrid",
    )


@pytest.fixture
def client(settings, cache):
    """Test client over the scripted-provider cache."""
    with TestClient(create_app(settings, cache=cache)) as test_client:
        yield test_client


@pytest.fixture
def stub_client(settings, stub_cache):
    """Test client over the stub-provider cache."""
    with TestClient(create_app(settings, cache=stub_cache)) as test_client:
        yield test_client
