"""ICS feed parsing for holidays and events.

Parsing is pure: bytes in, records out. Individual VEVENTs that lack a required
property or carry an unreadable start are dropped and logged at DEBUG; only a
body that is not a calendar at all is an error.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterator
from typing import Any, Optional, Union

from icalendar import Calendar, Component

from ..core.exceptions import FeedParseError
from ..core.timezone_utils import get_zone, resolve_wall_time, resolve_zone
from .models import EventRecord, HolidayRecord

logger = logging.getLogger(__name__)

HOLIDAY_LABEL_SEPARATOR = ", "


def _load_calendars(content: Union[str, bytes], source: str) -> list[Component]:
    """Parse ``content`` into VCALENDAR components.

    Raises:
        FeedParseError: If the body holds no calendar
    """
    # icalendar probes single-line str input as a file path; always hand it bytes.
    raw = content.encode("utf-8") if isinstance(content, str) else content
    try:
        components = Calendar.from_ical(raw, multiple=True)
    except Exception as exc:
        raise FeedParseError(f"{source} feed is not valid iCalendar: {exc}", source=source) from exc

    calendars = [c for c in components if c.name == "VCALENDAR"]
    if not calendars:
        raise FeedParseError(f"{source} feed contains no VCALENDAR", source=source)
    return calendars


def _iter_vevents(calendars: list[Component]) -> Iterator[Component]:
    for cal in calendars:
        yield from cal.walk("VEVENT")


def _text(component: Component, name: str) -> Optional[str]:
    value = component.get(name)
    if value is None:
        return None
    return str(value).strip()


def _start_value(component: Component) -> tuple[Any, Optional[str]]:
    """Return the DTSTART value and its TZID parameter, or (None, None)."""
    prop = component.get("DTSTART")
    if prop is None:
        return None, None
    try:
        value = prop.dt
    except (AttributeError, ValueError):
        logger.debug("Unparsable DTSTART %r", str(prop))
        return None, None
    tzid = prop.params.get("TZID") if hasattr(prop, "params") else None
    return value, tzid


def parse_holiday_feed(content: Union[str, bytes]) -> list[HolidayRecord]:
    """Parse a holiday ICS feed.

    Each VEVENT needs a DTSTART and a SUMMARY. Date-time starts are reduced to
    their date. Several holidays on one date are joined into one label, in feed
    order, so the same feed always yields the same labels.

    Args:
        content: Raw feed body

    Returns:
        One HolidayRecord per date, ordered by date

    Raises:
        FeedParseError: If the body is not an iCalendar document
    """
    labels: dict[datetime.date, list[str]] = {}
    dropped = 0

    for vevent in _iter_vevents(_load_calendars(content, "holiday")):
        value, _tzid = _start_value(vevent)
        summary = _text(vevent, "SUMMARY")
        if value is None or summary is None:
            dropped += 1
            continue

        day = value.date() if isinstance(value, datetime.datetime) else value
        if not isinstance(day, datetime.date):
            dropped += 1
            continue

        day_labels = labels.setdefault(day, [])
        if summary not in day_labels:
            day_labels.append(summary)

    if dropped:
        logger.debug("Dropped %d malformed holiday entries", dropped)

    return [
        HolidayRecord(date=day, label=HOLIDAY_LABEL_SEPARATOR.join(day_labels))
        for day, day_labels in sorted(labels.items())
    ]


def _event_id(vevent: Component, uid: str) -> str:
    """UID, qualified by RECURRENCE-ID for overridden instances."""
    recurrence = vevent.get("RECURRENCE-ID")
    if recurrence is None:
        return uid
    try:
        return f"{uid}#{recurrence.dt.isoformat()}"
    except (AttributeError, ValueError):
        return f"{uid}#{recurrence}"


def resolve_event_start(
    value: Any, tzid: Optional[str], default_timezone: Optional[str]
) -> Optional[datetime.datetime]:
    """Turn a DTSTART value into an aware datetime in the event's zone.

    Zone order: explicit TZID, then ``default_timezone``, then UTC. Values
    pinned to UTC without a TZID are absolute and are expressed in the default
    zone. Date-only values and non-existent local times return None.
    """
    if not isinstance(value, datetime.datetime):
        return None

    if value.tzinfo is not None and not tzid:
        return value.astimezone(get_zone(default_timezone))

    zone = resolve_zone(tzid, default_timezone)
    return resolve_wall_time(value.replace(tzinfo=None), zone)


def parse_event_feed(
    content: Union[str, bytes], default_timezone: Optional[str] = None
) -> list[EventRecord]:
    """Parse an event ICS feed.

    Each VEVENT needs a date-time DTSTART, a SUMMARY and a UID. A later VEVENT
    with the same id replaces an earlier one.

    Args:
        content: Raw feed body
        default_timezone: Zone for start times without a TZID

    Returns:
        EventRecords ordered by start

    Raises:
        FeedParseError: If the body is not an iCalendar document
    """
    events: dict[str, EventRecord] = {}
    dropped = 0

    for vevent in _iter_vevents(_load_calendars(content, "event")):
        uid = _text(vevent, "UID")
        summary = _text(vevent, "SUMMARY")
        value, tzid = _start_value(vevent)
        if not uid or summary is None or value is None:
            dropped += 1
            continue

        start = resolve_event_start(value, tzid, default_timezone)
        if start is None:
            logger.debug("Dropping event %s: start %r is date-only or does not exist", uid, value)
            dropped += 1
            continue

        event_id = _event_id(vevent, uid)
        events[event_id] = EventRecord(uid=event_id, start=start, name=summary)

    if dropped:
        logger.debug("Dropped %d malformed event entries", dropped)

    return sorted(events.values(), key=lambda e: (e.start, e.uid))
