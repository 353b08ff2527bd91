"""Async coordination primitives for epaper_calendar.

The aggregation store is shared between the refresh cycle (writers) and render
requests (readers). asyncio only ships a mutual-exclusion lock, so this module
provides a readers/writer lock with writer preference: once a writer is waiting
no new reader is admitted, so a steady stream of renders cannot starve a merge.

Usage Example:
    ```python
    lock = AsyncRWLock()

    async with lock.read():
        entries = copy.deepcopy(shared)

    async with lock.write():
        shared.update(new_entries)
    ```
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class AsyncRWLock:
    """Many concurrent readers or one exclusive writer."""

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        """Number of readers currently holding the lock."""
        return self._readers

    @property
    def writer_active(self) -> bool:
        """Whether a writer currently holds the lock."""
        return self._writer_active

    async def acquire_read(self) -> None:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer_active and self._writers_waiting == 0
            )
            self._readers += 1

    async def release_read(self) -> None:
        async with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    async def acquire_write(self) -> None:
        async with self._cond:
            self._writers_waiting += 1
            acquired = False
            try:
                await self._cond.wait_for(lambda: not self._writer_active and self._readers == 0)
                acquired = True
            finally:
                self._writers_waiting -= 1
                if not acquired:
                    # A cancelled writer may be the only thing holding readers back.
                    self._cond.notify_all()
            self._writer_active = True

    async def release_write(self) -> None:
        async with self._cond:
            self._writer_active = False
            self._cond.notify_all()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        """Hold shared access for the duration of the block."""
        await self.acquire_read()
        try:
            yield
        finally:
            await self.release_read()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        """Hold exclusive access for the duration of the block."""
        await self.acquire_write()
        try:
            yield
        finally:
            await self.release_write()
