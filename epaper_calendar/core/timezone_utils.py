"""Timezone resolution and wall-clock helpers for epaper_calendar."""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo
from functools import lru_cache
from typing import ClassVar, Optional

logger = logging.getLogger(__name__)

UTC = datetime.timezone.utc


class TimezoneAliases:
    """Lookup tables for non-IANA names commonly found in ICS feeds."""

    # Windows timezone names used by Outlook/Exchange exports
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "GMT Standard Time": "Europe/London",
        "W. Europe Standard Time": "Europe/Berlin",
        "Romance Standard Time": "Europe/Paris",
        "Russian Standard Time": "Europe/Moscow",
        "China Standard Time": "Asia/Shanghai",
        "Tokyo Standard Time": "Asia/Tokyo",
        "Korea Standard Time": "Asia/Seoul",
        "Singapore Standard Time": "Asia/Singapore",
        "India Standard Time": "Asia/Kolkata",
        "Myanmar Standard Time": "Asia/Yangon",
        "SE Asia Standard Time": "Asia/Bangkok",
        "AUS Eastern Standard Time": "Australia/Sydney",
        "New Zealand Standard Time": "Pacific/Auckland",
    }

    # Obsolete or alternative names mapped to canonical IANA identifiers
    TZ_ALIAS_MAP: ClassVar[dict[str, str]] = {
        "US/Pacific": "America/Los_Angeles",
        "US/Mountain": "America/Denver",
        "US/Central": "America/Chicago",
        "US/Eastern": "America/New_York",
        "GMT": "UTC",
        "Etc/UTC": "UTC",
        "Etc/GMT": "UTC",
        "Universal": "UTC",
        "Zulu": "UTC",
        "Z": "UTC",
        "Asia/Rangoon": "Asia/Yangon",
        "Asia/Saigon": "Asia/Ho_Chi_Minh",
    }


def normalize_timezone_name(tz_str: Optional[str]) -> Optional[str]:
    """Normalize a timezone string to a canonical IANA identifier.

    Resolution order: Windows name, alias, then the name itself. The result is
    validated with zoneinfo.

    Args:
        tz_str: Timezone string (Windows name, alias, or IANA identifier)

    Returns:
        Canonical IANA identifier or None if it cannot be resolved

    Examples:
        >>> normalize_timezone_name("SE Asia Standard Time")
        'Asia/Bangkok'
        >>> normalize_timezone_name("US/Pacific")
        'America/Los_Angeles'
        >>> normalize_timezone_name("Mars/Olympus_Mons") is None
        True
    """
    if not tz_str:
        return None

    name = tz_str.strip()
    name = TimezoneAliases.WINDOWS_TZ_MAP.get(name, name)
    name = TimezoneAliases.TZ_ALIAS_MAP.get(name, name)
    try:
        zoneinfo.ZoneInfo(name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        return None
    return name


@lru_cache(maxsize=64)
def get_zone(tz_str: Optional[str]) -> datetime.tzinfo:
    """Return a tzinfo for ``tz_str``, falling back to UTC for unknown names."""
    name = normalize_timezone_name(tz_str)
    if name is None:
        if tz_str:
            logger.debug("Unknown timezone %r, falling back to UTC", tz_str)
        return UTC
    return zoneinfo.ZoneInfo(name)


def resolve_zone(explicit: Optional[str], default: Optional[str]) -> datetime.tzinfo:
    """Pick the zone for an event time.

    Explicit zone parameter first, then the configured default, then UTC. An
    explicit name that cannot be resolved falls back to UTC rather than to the
    default, since the feed stated a zone we do not know.
    """
    if explicit:
        return get_zone(explicit)
    if default:
        return get_zone(default)
    return UTC


def resolve_wall_time(
    wall: datetime.datetime, zone: datetime.tzinfo
) -> Optional[datetime.datetime]:
    """Attach ``zone`` to a naive wall-clock time.

    Ambiguous times (clocks rolled back) resolve to the earlier instant.
    Times that do not exist (clocks jumped forward) return None.

    Args:
        wall: Naive local date-time
        zone: Zone the wall time is expressed in

    Returns:
        Timezone-aware datetime, or None for a non-existent local time
    """
    candidate = wall.replace(tzinfo=zone, fold=0)
    round_trip = candidate.astimezone(UTC).astimezone(zone)
    if round_trip.replace(tzinfo=None) != wall.replace(fold=0):
        return None
    return candidate


class TimeProvider:
    """Supplies the current time, overridable for tests."""

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the EPAPER_TEST_TIME environment
        variable (ISO 8601, e.g. "2025-06-15T09:00:00+07:00"). A naive value
        is taken as UTC.
        """
        test_time = os.environ.get("EPAPER_TEST_TIME")
        if test_time:
            from dateutil import parser as date_parser

            try:
                dt = date_parser.isoparse(test_time)
            except ValueError as e:
                logger.warning("Failed to parse EPAPER_TEST_TIME=%r: %s", test_time, e)
            else:
                if dt.tzinfo is None:
                    return dt.replace(tzinfo=UTC)
                return dt.astimezone(UTC)

        return datetime.datetime.now(UTC)


_time_provider = TimeProvider()


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function)."""
    return _time_provider.now_utc()


def to_local(dt: datetime.datetime, tz_str: Optional[str]) -> datetime.datetime:
    """Convert an aware datetime into the zone named ``tz_str``."""
    return dt.astimezone(get_zone(tz_str))
