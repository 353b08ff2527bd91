"""HTTP routes exposing the store and the page renderer."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable

from aiohttp import web

from ..core.exceptions import RenderError
from ..core.health_tracker import HealthTracker
from ..domain.store import AggregationStore
from ..rendering.encoder import CONTENT_TYPE, OutputMode
from ..rendering.page import EPaperPage

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = OutputMode.FULL


def register_routes(
    app: web.Application,
    store: AggregationStore,
    page: EPaperPage,
    health_tracker: HealthTracker,
    time_provider: Callable[[], datetime.datetime],
) -> None:
    """Register all routes on ``app``.

    Args:
        app: aiohttp web application
        store: Shared aggregation store
        page: Page render service
        health_tracker: Health tracking instance
        time_provider: Returns the current UTC time
    """

    async def health_check(_request: web.Request) -> web.Response:
        """Refresh and render health; 503 while degraded."""
        status = health_tracker.get_health_status(time_provider().isoformat())
        http_status = 200 if status.status == "ok" else 503
        return web.json_response(status.to_dict(), status=http_status)

    async def last_update(_request: web.Request) -> web.Response:
        """Instant of the last snapshot change, ISO 8601."""
        changed_at = await store.last_change()
        return web.Response(text=changed_at.isoformat(), content_type="text/plain")

    async def weather(_request: web.Request) -> web.Response:
        """Current weather snapshot or null."""
        snapshot = await store.current_weather()
        body = snapshot.model_dump(mode="json") if snapshot is not None else None
        return web.json_response(body)

    async def epaper_page(request: web.Request) -> web.Response:
        """Rendered page as PNG; ``output`` selects the colour plane."""
        raw_output = request.query.get("output", DEFAULT_OUTPUT.value)
        try:
            output = OutputMode(raw_output)
        except ValueError:
            allowed = ", ".join(mode.value for mode in OutputMode)
            return web.json_response(
                {"error": f"invalid output {raw_output!r}; expected one of: {allowed}"},
                status=400,
            )

        try:
            data = await page.render(output)
        except RenderError:
            logger.exception("Failed to render %s page", output.value)
            return web.json_response({"error": "internal error"}, status=500)

        return web.Response(
            body=data,
            content_type=CONTENT_TYPE,
            headers={"Cache-Control": "no-store"},
        )

    app.router.add_get("/health_check", health_check)
    app.router.add_get("/last_update", last_update)
    app.router.add_get("/weather", weather)
    app.router.add_get("/epaper_page", epaper_page)
