"""
Tests for the periodic sweep service.
"""
import asyncio
import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from elurinfo.cache.store import StoredRecord
from elurinfo.services.sweep_service import SweepService


class TestSweepService:
    """Tests for SweepService."""

    @pytest.mark.asyncio
    async def test_run_once_sweeps_every_category(self, cache, store, clock):
        """It should delete expired records and remember the result."""
        await store.upsert_by_key(StoredRecord(
            category="avalanche-report",
            key="Pirineo Aragonés",
            payload=json.dumps({"risk_level": 2}),
            last_update=clock.now - timedelta(days=45),
        ))
        service = SweepService(cache)

        result = await service.run_once()

        assert result["avalanche-report"] == 1
        assert service.last_result == result
        assert store.records == []

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        """It should run the first sweep after the initial delay and stop cleanly."""
        cache = MagicMock()
        cache.sweep_all = AsyncMock(return_value={"avalanche-report": 0})
        service = SweepService(cache, interval_seconds=3600, initial_delay_seconds=0)

        await service.start()
        assert service.running
        for _ in range(5):
            await asyncio.sleep(0)
        await service.stop()

        assert not service.running
        cache.sweep_all.assert_called_once()

    @pytest.mark.asyncio
    async def test_loop_survives_sweep_errors(self):
        """It should log a failed sweep and keep running."""
        cache = MagicMock()
        cache.sweep_all = AsyncMock(side_effect=RuntimeError("database down"))
        service = SweepService(cache, interval_seconds=3600, initial_delay_seconds=0)

        await service.start()
        for _ in range(5):
            await asyncio.sleep(0)

        assert service.running
        await service.stop()

    @pytest.mark.asyncio
    async def test_start_twice_is_ignored(self):
        """It should not start a second loop."""
        cache = MagicMock()
        cache.sweep_all = AsyncMock(return_value={})
        service = SweepService(cache, initial_delay_seconds=3600)

        await service.start()
        first_task = service._task
        await service.start()

        assert service._task is first_task
        await service.stop()
