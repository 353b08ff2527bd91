"""Data models for calendar and weather snapshots."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WeatherCondition(str, Enum):
    """Home Assistant weather condition codes."""

    CLEAR_NIGHT = "clear-night"
    CLOUDY = "cloudy"
    EXCEPTIONAL = "exceptional"
    FOG = "fog"
    HAIL = "hail"
    LIGHTNING = "lightning"
    LIGHTNING_RAINY = "lightning-rainy"
    PARTLYCLOUDY = "partlycloudy"
    POURING = "pouring"
    RAINY = "rainy"
    SNOWY = "snowy"
    SNOWY_RAINY = "snowy-rainy"
    SUNNY = "sunny"
    WINDY = "windy"
    WINDY_VARIANT = "windy-variant"


class WeatherAttributes(BaseModel):
    """Measured values reported alongside the weather condition."""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(..., description="Current temperature")
    temperature_unit: str = Field(default="", description="Unit suffix, e.g. '°C'")
    dew_point: Optional[float] = None
    humidity: Optional[float] = None
    cloud_coverage: Optional[float] = None
    uv_index: Optional[float] = None
    pressure: Optional[float] = None
    wind_bearing: Optional[float] = None
    wind_speed: Optional[float] = None


class WeatherSnapshot(BaseModel):
    """Latest weather state of the forecast entity.

    Decoded directly from the Home Assistant state JSON; keys other than
    ``state`` and ``attributes`` are ignored.
    """

    model_config = ConfigDict(frozen=True)

    state: WeatherCondition
    attributes: WeatherAttributes

    def differs_from(self, other: Optional[WeatherSnapshot]) -> bool:
        """Whether this snapshot counts as a change relative to ``other``.

        Only the condition code and the temperature are compared.
        """
        if other is None:
            return True
        return (
            self.state != other.state
            or self.attributes.temperature != other.attributes.temperature
        )


class HolidayRecord(BaseModel):
    """One day carrying a holiday label, as read from the holiday feed."""

    date: dt.date
    label: str


class EventRecord(BaseModel):
    """One timed event, as read from the event feed."""

    uid: str
    start: dt.datetime = Field(..., description="Timezone-aware start in the event's zone")
    name: str

    @property
    def date(self) -> dt.date:
        """Calendar date of the start, in the event's own zone."""
        return self.start.date()


class EventOccurrence(BaseModel):
    """An event as stored under its date."""

    start: dt.datetime
    name: str


class DateEntry(BaseModel):
    """Everything known about one calendar date."""

    date: dt.date
    holiday: Optional[str] = None
    events: dict[str, EventOccurrence] = Field(default_factory=dict)

    @property
    def is_holiday(self) -> bool:
        return self.holiday is not None

    def sorted_events(self) -> list[tuple[str, EventOccurrence]]:
        """Events ordered by start time, then name, then id."""
        return sorted(self.events.items(), key=lambda item: (item[1].start, item[1].name, item[0]))
