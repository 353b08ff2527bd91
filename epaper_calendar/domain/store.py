"""In-memory aggregation of holidays, events and weather.

The store is the only shared mutable state in the process. Every merge runs
under the writer side of an AsyncRWLock and reports whether it changed
anything; readers copy what they need under the reader side and process the
copy after releasing the lock.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from ..calendar.models import (
    DateEntry,
    EventOccurrence,
    EventRecord,
    HolidayRecord,
    WeatherSnapshot,
)
from ..core.async_utils import AsyncRWLock
from ..core.timezone_utils import now_utc

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 9


@dataclass(frozen=True)
class StoreView:
    """Point-in-time copy of the part of the store a render needs."""

    entries: list[DateEntry]
    weather: Optional[WeatherSnapshot]
    last_change: datetime.datetime


class AggregationStore:
    """Date-keyed calendar data, latest weather and a last-change instant."""

    def __init__(self, created_at: Optional[datetime.datetime] = None) -> None:
        self._entries: dict[datetime.date, DateEntry] = {}
        self._weather: Optional[WeatherSnapshot] = None
        self._last_change: datetime.datetime = created_at or now_utc()
        self._lock = AsyncRWLock()

    def _entry_for(self, day: datetime.date) -> DateEntry:
        entry = self._entries.get(day)
        if entry is None:
            entry = DateEntry(date=day)
            self._entries[day] = entry
        return entry

    async def merge_holidays(self, holidays: Iterable[HolidayRecord]) -> bool:
        """Upsert holiday labels.

        Returns:
            True if any date gained a label or its label differs from before
        """
        changed = False
        async with self._lock.write():
            for record in holidays:
                entry = self._entry_for(record.date)
                if entry.holiday != record.label:
                    logger.debug("Holiday %s: %r -> %r", record.date, entry.holiday, record.label)
                    entry.holiday = record.label
                    changed = True
        return changed

    async def merge_events(self, events: Iterable[EventRecord]) -> bool:
        """Upsert events by id under their start date.

        Returns:
            True if an id was inserted or an existing id's start or name changed
        """
        changed = False
        async with self._lock.write():
            for record in events:
                entry = self._entry_for(record.date)
                occurrence = EventOccurrence(start=record.start, name=record.name)
                previous = entry.events.get(record.uid)
                if previous != occurrence:
                    entry.events[record.uid] = occurrence
                    changed = True
        return changed

    async def merge_weather(self, snapshot: WeatherSnapshot) -> bool:
        """Replace the weather snapshot.

        Returns:
            True if there was no snapshot or the condition or temperature differs
        """
        async with self._lock.write():
            changed = snapshot.differs_from(self._weather)
            self._weather = snapshot
        return changed

    async def mark_changed(self, when: datetime.datetime) -> bool:
        """Advance the last-change instant to ``when``.

        Earlier instants are ignored so the value never moves backwards.

        Returns:
            True if the instant advanced
        """
        async with self._lock.write():
            if when <= self._last_change:
                return False
            self._last_change = when
            return True

    async def last_change(self) -> datetime.datetime:
        async with self._lock.read():
            return self._last_change

    async def current_weather(self) -> Optional[WeatherSnapshot]:
        async with self._lock.read():
            return self._weather

    async def get_entry(self, day: datetime.date) -> Optional[DateEntry]:
        """Copy of the entry for ``day``, if any."""
        async with self._lock.read():
            entry = self._entries.get(day)
            return entry.model_copy(deep=True) if entry is not None else None

    def _window_unlocked(self, start: datetime.date, limit: int) -> list[DateEntry]:
        days = sorted(day for day in self._entries if day >= start)[:limit]
        return [self._entries[day].model_copy(deep=True) for day in days]

    async def window(self, start: datetime.date, limit: int = DEFAULT_WINDOW_SIZE) -> list[DateEntry]:
        """Copies of the first ``limit`` dates on or after ``start``, ascending.

        Dates without an entry are skipped rather than padded.
        """
        async with self._lock.read():
            return self._window_unlocked(start, limit)

    async def view(self, start: datetime.date, limit: int = DEFAULT_WINDOW_SIZE) -> StoreView:
        """Window, weather and last change copied under a single read lock."""
        async with self._lock.read():
            return StoreView(
                entries=self._window_unlocked(start, limit),
                weather=self._weather,
                last_change=self._last_change,
            )

    async def date_count(self) -> int:
        async with self._lock.read():
            return len(self._entries)
