"""Render service: store snapshot -> layout -> encoded PNG."""

from __future__ import annotations

import asyncio
import datetime
import logging
import threading
from collections.abc import Callable
from typing import Optional

from ..core.exceptions import RenderError
from ..core.health_tracker import HealthTracker
from ..core.timezone_utils import now_utc, to_local
from ..domain.store import AggregationStore
from .encoder import OutputMode, encode
from .fonts import FontSet
from .layout import WINDOW_DAYS, PageLayout, RenderSnapshot

logger = logging.getLogger(__name__)


class EPaperPage:
    """Produces e-paper images from the current store contents.

    The store's reader lock is held only while copying the window; drawing and
    encoding run in a worker thread. Renders are serialized among themselves
    because FreeType font objects are shared.
    """

    def __init__(
        self,
        store: AggregationStore,
        fonts: FontSet,
        display_timezone: Optional[str] = None,
        health_tracker: Optional[HealthTracker] = None,
        time_provider: Callable[[], datetime.datetime] = now_utc,
    ) -> None:
        self.store = store
        self.layout = PageLayout(fonts)
        self.display_timezone = display_timezone
        self.health_tracker = health_tracker
        self.time_provider = time_provider
        self._draw_lock = threading.Lock()

    async def snapshot(self) -> RenderSnapshot:
        """Copy the render inputs out of the store."""
        now = to_local(self.time_provider(), self.display_timezone)
        view = await self.store.view(now.date(), WINDOW_DAYS)
        return RenderSnapshot(now=now, entries=view.entries, weather=view.weather)

    def render_snapshot(self, snapshot: RenderSnapshot, output: OutputMode) -> bytes:
        """Compose and encode synchronously."""
        with self._draw_lock:
            canvas = self.layout.compose(snapshot)
            return encode(canvas, output)

    async def render(self, output: OutputMode) -> bytes:
        """Render the current snapshot as PNG bytes.

        Raises:
            RenderError: If fonts are missing or encoding fails
        """
        mode = OutputMode(output)
        snapshot = await self.snapshot()
        try:
            data = await asyncio.to_thread(self.render_snapshot, snapshot, mode)
        except RenderError as e:
            logger.error("Render of %s page failed: %s", mode.value, e)
            if self.health_tracker is not None:
                self.health_tracker.record_render(False, str(e))
            raise

        if self.health_tracker is not None:
            self.health_tracker.record_render(True, mode.value)
        return data
