"""
Status Reporter Module

Background task that logs the request counter and store size on a fixed
schedule until the shared cancellation event is set.
"""

import asyncio
import logging

from ..cache.store import KVStore, StatsSnapshot
from ..config.settings import settings

logger = logging.getLogger(__name__)


class StatusReporter:
    """
    Periodic status logger.

    Ticks are scheduled like a ticker: the next deadline is computed from
    the previous one, not from when the last report finished. A tick that
    is missed entirely (the loop was busy past the next deadline) is
    dropped rather than fired late in a burst.

    The store lock is only held inside report(), never across the wait.

    Attributes:
        store: The KVStore to observe
        interval: Seconds between reports
        ticks: Number of reports emitted so far
    """

    def __init__(self, store: KVStore, interval: float = None):
        self.store = store
        self.interval = interval if interval is not None else settings.REPORT_INTERVAL
        if self.interval <= 0:
            raise ValueError(f"interval must be greater than 0, got {self.interval}")
        self.ticks = 0

    def report(self) -> StatsSnapshot:
        """Take one snapshot and log it."""
        snapshot = self.store.stats()
        self.ticks += 1
        logger.info(
            f"Status: Requests={snapshot.total_requests}, "
            f"DB size={snapshot.database_size}"
        )
        return snapshot

    async def run(self, cancelled: asyncio.Event) -> None:
        """
        Report every interval seconds until cancelled is set.

        The wait for the next tick is itself a wait on cancelled, so the
        loop exits as soon as the event fires instead of at the end of the
        current interval.

        Args:
            cancelled: Event set once when shutdown begins
        """
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval

        try:
            while not cancelled.is_set():
                try:
                    await asyncio.wait_for(
                        cancelled.wait(),
                        timeout=max(0.0, next_tick - loop.time()),
                    )
                except asyncio.TimeoutError:
                    self.report()
                    next_tick += self.interval
                    now = loop.time()
                    if next_tick <= now:
                        next_tick = now + self.interval
        finally:
            logger.info("Background worker stopped")
