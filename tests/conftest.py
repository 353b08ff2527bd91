"""Shared fixtures for epaper_calendar tests."""

from __future__ import annotations

import datetime
import os
from collections.abc import AsyncIterator, Callable, Generator
from typing import Any

import httpx
import pytest

from epaper_calendar.calendar.models import WeatherSnapshot
from epaper_calendar.core.http_client import close_all_clients
from epaper_calendar.domain.store import AggregationStore

UTC = datetime.timezone.utc

# Fixed instant used wherever a test needs "now": Monday 2025-06-16 09:00 in Bangkok.
FIXED_NOW = datetime.datetime(2025, 6, 16, 2, 0, tzinfo=UTC)
STORE_CREATED_AT = datetime.datetime(2025, 6, 1, 0, 0, tzinfo=UTC)


def pytest_configure(config: Any) -> None:
    """Register markers used across the suite."""
    config.addinivalue_line("markers", "unit: Fast isolated unit tests")
    config.addinivalue_line("markers", "fast: Tests that finish well under a second")
    config.addinivalue_line("markers", "integration: Tests exercising several components together")


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Keep EPAPER_* variables from the host or earlier tests out of each test."""
    for key in list(os.environ):
        if key.startswith("EPAPER_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
async def cleanup_shared_http_clients() -> AsyncIterator[None]:
    """Close shared httpx clients after every test."""
    yield
    await close_all_clients()


@pytest.fixture
def store() -> AggregationStore:
    """Empty store with a fixed creation instant."""
    return AggregationStore(created_at=STORE_CREATED_AT)


@pytest.fixture
def fixed_now() -> Callable[[], datetime.datetime]:
    """Time provider returning FIXED_NOW."""
    return lambda: FIXED_NOW


def make_weather(state: str = "sunny", temperature: float = 30.5, unit: str = "°C") -> WeatherSnapshot:
    """Build a weather snapshot the way the fetcher would decode it."""
    return WeatherSnapshot.model_validate(
        {"state": state, "attributes": {"temperature": temperature, "temperature_unit": unit}}
    )


def weather_payload(state: str = "sunny", temperature: float = 30.5) -> dict[str, Any]:
    """Home Assistant state body for the forecast entity."""
    return {
        "entity_id": "weather.forecast_home",
        "state": state,
        "attributes": {
            "temperature": temperature,
            "dew_point": 22.1,
            "temperature_unit": "°C",
            "humidity": 71,
            "cloud_coverage": 12.5,
            "uv_index": 6.2,
            "pressure": 1009.4,
            "pressure_unit": "hPa",
            "wind_bearing": 203.1,
            "wind_speed": 11.2,
            "wind_speed_unit": "km/h",
            "friendly_name": "Forecast Home",
        },
        "last_changed": "2025-06-16T01:55:00+00:00",
    }


HOLIDAY_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//epaper-calendar test//EN
BEGIN:VEVENT
UID:newyear-2025@test
DTSTART;VALUE=DATE:20250101
SUMMARY:New Year
END:VEVENT
BEGIN:VEVENT
UID:songkran-2025@test
DTSTART;VALUE=DATE:20250413
SUMMARY:Songkran
END:VEVENT
BEGIN:VEVENT
UID:no-summary@test
DTSTART;VALUE=DATE:20250501
END:VEVENT
END:VCALENDAR
"""

EVENT_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//epaper-calendar test//EN
BEGIN:VEVENT
UID:dentist-1@test
DTSTART;TZID=Asia/Bangkok:20250616T090000
SUMMARY:Dentist
END:VEVENT
BEGIN:VEVENT
UID:standup-1@test
DTSTART;TZID=Asia/Bangkok:20250617T083000
SUMMARY:Standup
END:VEVENT
BEGIN:VEVENT
UID:no-start@test
SUMMARY:Floating
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def holiday_ics() -> str:
    return HOLIDAY_ICS


@pytest.fixture
def event_ics() -> str:
    return EVENT_ICS


def make_mock_client(routes: dict[str, Any]) -> httpx.AsyncClient:
    """AsyncClient answering from ``routes`` (path -> body, status or exception).

    A value may be a str/bytes body, a dict (served as JSON), an
    ``httpx.Response``, or an exception instance to raise.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        value = routes.get(request.url.path)
        if value is None:
            return httpx.Response(404, text="not found")
        if isinstance(value, Exception):
            raise value
        if isinstance(value, httpx.Response):
            return value
        if isinstance(value, dict):
            return httpx.Response(200, json=value)
        return httpx.Response(200, content=value.encode() if isinstance(value, str) else value)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://feeds.test")


@pytest.fixture
def weather_factory() -> Callable[..., WeatherSnapshot]:
    return make_weather


@pytest.fixture
def weather_state() -> Callable[..., dict[str, Any]]:
    return weather_payload


@pytest.fixture
def mock_client_factory() -> Callable[[dict[str, Any]], httpx.AsyncClient]:
    return make_mock_client
