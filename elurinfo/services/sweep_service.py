"""
Periodic sweep service.

Runs in the background and deletes records past their retention window,
forecasts whose valid date has passed and expired generic entries.
"""

import asyncio
import logging
from typing import Dict, Optional

from elurinfo.cache.freshness import FreshnessCache

logger = logging.getLogger(__name__)


class SweepService:
    """
    Service running FreshnessCache.sweep_all on a fixed interval.
    """

    def __init__(
        self,
        cache: FreshnessCache,
        interval_seconds: float = 60 * 60,
        initial_delay_seconds: float = 60,
    ):
        self._cache = cache
        self._interval_seconds = interval_seconds
        self._initial_delay_seconds = initial_delay_seconds
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self.last_result: Optional[Dict[str, int]] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the periodic sweep task."""
        if self._running:
            logger.warning("Sweep service is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info(f"Sweep service started (every {self._interval_seconds / 3600:g}h)")

    async def stop(self) -> None:
        """Stop the periodic sweep task."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Sweep service stopped")

    async def _sweep_loop(self) -> None:
        """Main loop that runs the sweep periodically."""
        # Let the app fully start before the first sweep
        await asyncio.sleep(self._initial_delay_seconds)

        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error during sweep: {e}", exc_info=True)

            try:
                await asyncio.sleep(self._interval_seconds)
            except asyncio.CancelledError:
                break

    async def run_once(self) -> Dict[str, int]:
        """
        Sweep every category once.

        Returns:
            Deleted rows per category
        """
        result = await self._cache.sweep_all()
        self.last_result = result

        total = sum(result.values())
        if total > 0:
            details = ", ".join(f"{category}: {count}" for category, count in result.items() if count)
            logger.info(f"Sweep completed: deleted {total} records ({details})")
        else:
            logger.debug("Sweep completed: nothing to delete")
        return result
