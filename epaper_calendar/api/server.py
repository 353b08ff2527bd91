"""epaper_calendar server: wires fetchers, store, scheduler and web app together."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from dataclasses import dataclass
from typing import Optional

import aiohttp_cors
from aiohttp import web

from ..calendar.fetchers import EventFeedFetcher, HolidayFeedFetcher, WeatherFetcher
from ..core.config_manager import AppConfig
from ..core.health_tracker import HealthTracker
from ..core.http_client import build_timeout, close_all_clients, get_shared_client
from ..core.logging_config import configure_logging
from ..core.timezone_utils import now_utc
from ..domain.refresh import RefreshOrchestrator
from ..domain.scheduler import RefreshScheduler
from ..domain.store import AggregationStore
from ..rendering.fonts import FontSet
from ..rendering.page import EPaperPage
from .correlation_id import request_id_middleware
from .middleware import make_auth_middleware, make_timeout_middleware
from .routes import register_routes

logger = logging.getLogger(__name__)

HANDLER_TIMEOUT_SECONDS = 15.0
CORS_MAX_AGE_SECONDS = 600


@dataclass
class Services:
    """Long-lived objects shared by the scheduler and the web app."""

    store: AggregationStore
    orchestrator: RefreshOrchestrator
    scheduler: RefreshScheduler
    page: EPaperPage
    health_tracker: HealthTracker


async def build_services(config: AppConfig) -> Services:
    """Create the store, fetchers, orchestrator, scheduler and page renderer.

    Raises:
        RenderError: If a configured font directory is incomplete
    """
    fonts = FontSet(config.font_dir)
    fonts.validate()

    client = await get_shared_client("feeds", timeout=build_timeout(config.request_timeout))
    health_tracker = HealthTracker(stale_after_seconds=3 * config.refresh_interval_seconds)
    store = AggregationStore()

    orchestrator = RefreshOrchestrator(
        store,
        holiday_fetcher=HolidayFeedFetcher(client, config.ical_holiday, timeout=config.request_timeout),
        event_fetcher=EventFeedFetcher(
            client,
            config.ical_event,
            default_timezone=config.default_timezone,
            timeout=config.request_timeout,
        ),
        weather_fetcher=WeatherFetcher(
            client, config.ha_url, config.ha_token, timeout=config.request_timeout
        ),
        health_tracker=health_tracker,
    )
    scheduler = RefreshScheduler(orchestrator, interval_seconds=config.refresh_interval_seconds)
    page = EPaperPage(
        store,
        fonts,
        display_timezone=config.display_timezone,
        health_tracker=health_tracker,
    )
    return Services(
        store=store,
        orchestrator=orchestrator,
        scheduler=scheduler,
        page=page,
        health_tracker=health_tracker,
    )


def make_app(
    services: Services,
    access_token: Optional[str] = None,
    handler_timeout: float = HANDLER_TIMEOUT_SECONDS,
) -> web.Application:
    """Create the aiohttp application with routes wired to ``services``.

    Middlewares, outermost first: request ID, trailing-slash redirect,
    per-request timeout, access token. CORS is open to any origin.
    """
    app = web.Application(
        middlewares=[
            request_id_middleware,
            web.normalize_path_middleware(remove_slash=True, append_slash=False),
            make_timeout_middleware(handler_timeout),
            make_auth_middleware(access_token),
        ]
    )
    register_routes(
        app,
        store=services.store,
        page=services.page,
        health_tracker=services.health_tracker,
        time_provider=now_utc,
    )

    cors = aiohttp_cors.setup(
        app,
        defaults={
            "*": aiohttp_cors.ResourceOptions(
                expose_headers="*",
                allow_headers="*",
                max_age=CORS_MAX_AGE_SECONDS,
            )
        },
    )
    for route in list(app.router.routes()):
        cors.add(route)

    if access_token is None:
        logger.warning("No access token configured; HTTP endpoints are unauthenticated")
    return app


async def _serve(config: AppConfig, external_stop_event: Optional[asyncio.Event] = None) -> None:
    """Run the initial refresh, the web server and the scheduler until stopped.

    Args:
        config: Validated configuration
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers are not registered (caller owns signal handling).
    """
    stop_event = external_stop_event or asyncio.Event()
    services = await build_services(config)

    # Serve only once the store holds a first snapshot.
    logger.info("Starting initial refresh")
    await services.scheduler.refresh_now()

    app = make_app(services, config.access_token)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host=config.server_bind, port=config.server_port)
    try:
        await site.start()
    except OSError:
        logger.exception("Failed to start server on %s:%d", config.server_bind, config.server_port)
        await runner.cleanup()
        await close_all_clients()
        raise
    logger.info("Server started on %s:%d", config.server_bind, config.server_port)

    refresher = asyncio.create_task(
        services.scheduler.run(stop_event, initial_refresh=False), name="refresh-scheduler"
    )

    if external_stop_event is None:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)

    await stop_event.wait()
    logger.info("Stop event received, shutting down")

    refresher.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await refresher

    await runner.cleanup()
    await close_all_clients()
    logger.info("Server shutdown complete")


def start_server(config: AppConfig) -> None:
    """Run the server, blocking until SIGINT/SIGTERM.

    Args:
        config: Validated configuration
    """
    configure_logging(debug_mode=config.log_level.upper() == "DEBUG")
    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
