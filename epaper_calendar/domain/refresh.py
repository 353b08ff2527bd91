"""Refresh cycle: fetch all feeds concurrently and merge them into the store."""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from ..core.health_tracker import HealthTracker
from ..core.timezone_utils import now_utc
from .store import AggregationStore

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self) -> Any: ...


@dataclass
class RefreshResult:
    """Outcome of one refresh cycle."""

    changed: bool = False
    skipped: bool = False
    changed_sources: list[str] = field(default_factory=list)
    errors: list[BaseException] = field(default_factory=list)


class RefreshOrchestrator:
    """Runs holiday, event and weather fetch-then-merge tasks as one cycle.

    All three tasks always run to completion; a failing feed only withholds its
    own contribution. The first error in completion order is raised after the
    cycle has finished and the last-change instant has been updated.
    """

    def __init__(
        self,
        store: AggregationStore,
        holiday_fetcher: Fetcher,
        event_fetcher: Fetcher,
        weather_fetcher: Fetcher,
        health_tracker: Optional[HealthTracker] = None,
        time_provider: Callable[[], datetime.datetime] = now_utc,
    ) -> None:
        self.store = store
        self.holiday_fetcher = holiday_fetcher
        self.event_fetcher = event_fetcher
        self.weather_fetcher = weather_fetcher
        self.health_tracker = health_tracker
        self.time_provider = time_provider
        self._in_flight = asyncio.Lock()

    @property
    def in_flight(self) -> bool:
        """Whether a cycle is currently running."""
        return self._in_flight.locked()

    async def _refresh_holidays(self) -> bool:
        return await self.store.merge_holidays(await self.holiday_fetcher.fetch())

    async def _refresh_events(self) -> bool:
        return await self.store.merge_events(await self.event_fetcher.fetch())

    async def _refresh_weather(self) -> bool:
        return await self.store.merge_weather(await self.weather_fetcher.fetch())

    async def refresh(self) -> RefreshResult:
        """Run one cycle unless another one is in flight.

        Returns:
            RefreshResult; ``skipped`` is set when a cycle was already running

        Raises:
            FetchError: The first error of the cycle, after every task finished
        """
        if self._in_flight.locked():
            logger.warning("Refresh already in progress; skipping this trigger")
            return RefreshResult(skipped=True)

        async with self._in_flight:
            result = await self._run_cycle()

        if result.errors:
            raise result.errors[0]
        return result

    async def _run_job(
        self, name: str, job: Callable[[], Awaitable[bool]]
    ) -> tuple[str, bool, Optional[Exception]]:
        try:
            return name, await job(), None
        except Exception as exc:
            logger.error("%s refresh failed: %s", name.capitalize(), exc)
            return name, False, exc

    async def _run_cycle(self) -> RefreshResult:
        if self.health_tracker is not None:
            self.health_tracker.record_refresh_attempt()
        logger.debug("Starting refresh cycle")

        jobs: dict[str, Callable[[], Awaitable[bool]]] = {
            "holiday": self._refresh_holidays,
            "event": self._refresh_events,
            "weather": self._refresh_weather,
        }
        tasks = [
            asyncio.create_task(self._run_job(name, job), name=f"refresh-{name}")
            for name, job in jobs.items()
        ]

        result = RefreshResult()
        try:
            for next_done in asyncio.as_completed(tasks):
                name, changed, error = await next_done
                if error is not None:
                    result.errors.append(error)
                elif changed:
                    result.changed = True
                    result.changed_sources.append(name)
        finally:
            for task in tasks:
                task.cancel()

        if result.changed:
            now = self.time_provider()
            await self.store.mark_changed(now)
            logger.info(
                "Snapshot changed (%s); last change set to %s",
                ", ".join(result.changed_sources),
                now.isoformat(),
            )
        else:
            logger.debug("Refresh cycle finished without changes")

        if self.health_tracker is not None:
            if result.errors:
                self.health_tracker.record_refresh_failure(result.errors[0])
            else:
                self.health_tracker.record_refresh_success(await self.store.date_count())

        return result
