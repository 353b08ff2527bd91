"""Wall-clock aligned refresh scheduling."""

from __future__ import annotations

import asyncio
import datetime
import logging
import math
from collections.abc import Callable
from typing import Optional

from ..core.exceptions import EPaperCalendarError
from ..core.timezone_utils import now_utc
from .refresh import RefreshOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 300


def seconds_until_next_tick(now: datetime.datetime, interval_seconds: int) -> float:
    """Seconds from ``now`` to the next multiple of ``interval_seconds`` since the epoch.

    With a 300 second interval the ticks fall on :00, :05, :10 ... of every hour.
    A ``now`` exactly on a tick schedules the following one.
    """
    epoch = now.timestamp()
    next_tick = (math.floor(epoch / interval_seconds) + 1) * interval_seconds
    return next_tick - epoch


class RefreshScheduler:
    """Runs an initial refresh, then one refresh per wall-clock tick.

    Ticks are not delayed by a slow cycle: each tick starts its refresh as a
    task and the orchestrator's single-flight guard drops overlapping ones.
    """

    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        time_provider: Callable[[], datetime.datetime] = now_utc,
    ) -> None:
        self.orchestrator = orchestrator
        self.interval_seconds = interval_seconds
        self.time_provider = time_provider
        self._pending: set[asyncio.Task] = set()

    async def refresh_now(self) -> bool:
        """Run one cycle, logging instead of raising.

        Returns:
            True if the cycle completed without errors
        """
        try:
            result = await self.orchestrator.refresh()
        except EPaperCalendarError as exc:
            logger.error("Refresh cycle failed: %s", exc)
            return False
        except Exception:
            logger.exception("Refresh cycle failed unexpectedly")
            return False
        return not result.skipped

    def _trigger(self) -> None:
        task = asyncio.create_task(self.refresh_now(), name="scheduled-refresh")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def run(self, stop_event: asyncio.Event, initial_refresh: bool = True) -> None:
        """Loop until ``stop_event`` is set.

        Args:
            stop_event: Set to end the loop
            initial_refresh: Run and await one cycle before the first tick
        """
        if initial_refresh:
            logger.info("Starting initial refresh")
            ok = await self.refresh_now()
            logger.info("Initial refresh %s", "completed" if ok else "finished with errors")

        try:
            while not stop_event.is_set():
                delay = seconds_until_next_tick(self.time_provider(), self.interval_seconds)
                logger.debug("Next refresh in %.1f seconds", delay)
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    self._trigger()
        finally:
            await self.cancel_pending()

    async def cancel_pending(self, timeout: Optional[float] = None) -> None:
        """Cancel refreshes still running from earlier ticks."""
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending, timeout=timeout)
