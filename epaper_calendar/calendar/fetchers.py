"""HTTP fetchers for the holiday feed, the event feed and the weather entity.

Fetchers only read and decode; merging into the store is the refresh
orchestrator's job. Every failure that loses the whole feed is raised as
FetchError so one failing source never hides the others.
"""

from __future__ import annotations

import asyncio
import logging
from typing import ClassVar, Optional

import httpx
from pydantic import ValidationError

from ..core.exceptions import FetchError
from .ics_parser import parse_event_feed, parse_holiday_feed
from .models import EventRecord, HolidayRecord, WeatherSnapshot

logger = logging.getLogger(__name__)

WEATHER_ENTITY_ID = "weather.forecast_home"


class FeedFetcher:
    """GET one URL through a shared client and map failures to FetchError."""

    source: ClassVar[str] = "feed"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        timeout: Optional[float] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.client = client
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}

    async def _get(self) -> bytes:
        """Download the body.

        Raises:
            FetchError: On transport failure, timeout or non-2xx status
        """
        request_timeout = httpx.USE_CLIENT_DEFAULT if self.timeout is None else self.timeout
        try:
            response = await self.client.get(self.url, headers=self.headers, timeout=request_timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(f"{self.source} request timed out", source=self.source) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise FetchError(
                f"{self.source} returned HTTP {status}: {e.response.reason_phrase}",
                source=self.source,
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"{self.source} request failed: {e}", source=self.source) from e

        logger.debug("Fetched %s (%d bytes)", self.source, len(response.content))
        return response.content


class HolidayFeedFetcher(FeedFetcher):
    """Reads the holiday ICS feed."""

    source = "holiday"

    async def fetch(self) -> list[HolidayRecord]:
        content = await self._get()
        records = await asyncio.to_thread(parse_holiday_feed, content)
        logger.debug("Parsed %d holiday dates", len(records))
        return records


class EventFeedFetcher(FeedFetcher):
    """Reads the personal event ICS feed."""

    source = "event"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        default_timezone: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(client, url, timeout=timeout)
        self.default_timezone = default_timezone

    async def fetch(self) -> list[EventRecord]:
        content = await self._get()
        records = await asyncio.to_thread(parse_event_feed, content, self.default_timezone)
        logger.debug("Parsed %d events", len(records))
        return records


class WeatherFetcher(FeedFetcher):
    """Reads the current weather state from Home Assistant."""

    source = "weather"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        token: str,
        entity_id: str = WEATHER_ENTITY_ID,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(
            client,
            f"{base_url.rstrip('/')}/api/states/{entity_id}",
            timeout=timeout,
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
        )

    async def fetch(self) -> WeatherSnapshot:
        """Fetch and decode the weather state.

        Raises:
            FetchError: Also when the body is not a valid weather state
        """
        content = await self._get()
        try:
            return WeatherSnapshot.model_validate_json(content)
        except ValidationError as e:
            raise FetchError(
                f"weather response could not be decoded: {e.error_count()} error(s)",
                source=self.source,
            ) from e
