"""Unit tests for epaper_calendar.calendar.ics_parser."""

import datetime
import zoneinfo

import pytest

from epaper_calendar.calendar.ics_parser import (
    parse_event_feed,
    parse_holiday_feed,
    resolve_event_start,
)
from epaper_calendar.core.exceptions import FeedParseError, FetchError

pytestmark = [pytest.mark.unit, pytest.mark.fast]

BANGKOK = zoneinfo.ZoneInfo("Asia/Bangkok")
UTC = datetime.timezone.utc


def calendar(*events: str) -> str:
    """Wrap VEVENT bodies in a minimal VCALENDAR."""
    body = "".join(f"BEGIN:VEVENT\n{event.strip()}\nEND:VEVENT\n" for event in events)
    return f"BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//test//EN\n{body}END:VCALENDAR\n"


class TestParseHolidayFeed:
    """Tests for parse_holiday_feed."""

    def test_parse_when_valid_feed_then_one_record_per_date(self, holiday_ics):
        """Test holidays are read in date order and entries without SUMMARY dropped."""
        records = parse_holiday_feed(holiday_ics)

        assert [(r.date, r.label) for r in records] == [
            (datetime.date(2025, 1, 1), "New Year"),
            (datetime.date(2025, 4, 13), "Songkran"),
        ]

    def test_parse_accepts_bytes(self, holiday_ics):
        records = parse_holiday_feed(holiday_ics.encode("utf-8"))
        assert len(records) == 2

    def test_parse_when_same_date_twice_then_labels_joined_in_feed_order(self):
        """Test two holidays on one date produce one joined label."""
        content = calendar(
            "UID:a\nDTSTART;VALUE=DATE:20250505\nSUMMARY:Coronation Day",
            "UID:b\nDTSTART;VALUE=DATE:20250505\nSUMMARY:Bank Holiday",
            "UID:c\nDTSTART;VALUE=DATE:20250505\nSUMMARY:Coronation Day",
        )

        records = parse_holiday_feed(content)

        assert len(records) == 1
        assert records[0].label == "Coronation Day, Bank Holiday"

    def test_parse_when_datetime_start_then_date_used(self):
        content = calendar("UID:a\nDTSTART:20251231T170000Z\nSUMMARY:New Year's Eve")

        records = parse_holiday_feed(content)

        assert records[0].date == datetime.date(2025, 12, 31)

    def test_parse_when_no_start_then_dropped(self):
        content = calendar("UID:a\nSUMMARY:Someday", "UID:b\nDTSTART;VALUE=DATE:20250101\nSUMMARY:New Year")

        assert [r.label for r in parse_holiday_feed(content)] == ["New Year"]

    def test_parse_when_start_unparsable_then_dropped(self):
        """Test a malformed date drops only its own entry."""
        content = calendar(
            "UID:a\nDTSTART;VALUE=DATE:2025XX01\nSUMMARY:Broken",
            "UID:b\nDTSTART;VALUE=DATE:20250101\nSUMMARY:New Year",
        )

        records = parse_holiday_feed(content)

        assert [(r.date, r.label) for r in records] == [(datetime.date(2025, 1, 1), "New Year")]

    def test_parse_when_calendar_empty_then_no_records(self):
        assert parse_holiday_feed(calendar()) == []

    @pytest.mark.parametrize("content", ["", "this is not a calendar", "<html><body>502</body></html>"])
    def test_parse_when_not_icalendar_then_feed_parse_error(self, content):
        """Test a body that is not a calendar fails the whole feed."""
        with pytest.raises(FeedParseError) as exc_info:
            parse_holiday_feed(content)

        assert exc_info.value.source == "holiday"
        assert isinstance(exc_info.value, FetchError)


class TestParseEventFeed:
    """Tests for parse_event_feed."""

    def test_parse_when_valid_feed_then_records_in_start_order(self, event_ics):
        """Test events keep their TZID wall time and entries without DTSTART are dropped."""
        records = parse_event_feed(event_ics, default_timezone="UTC")

        assert [r.uid for r in records] == ["dentist-1@test", "standup-1@test"]
        dentist = records[0]
        assert dentist.name == "Dentist"
        assert dentist.start == datetime.datetime(2025, 6, 16, 9, 0, tzinfo=BANGKOK)
        assert dentist.start.hour == 9
        assert dentist.date == datetime.date(2025, 6, 16)

    def test_parse_when_floating_time_then_default_zone(self):
        """Test a start without TZID is read in the configured default zone."""
        content = calendar("UID:a\nDTSTART:20250616T090000\nSUMMARY:Gym")

        (record,) = parse_event_feed(content, default_timezone="Asia/Bangkok")

        assert record.start.utcoffset() == datetime.timedelta(hours=7)
        assert record.start.hour == 9

    def test_parse_when_floating_time_and_no_default_then_utc(self):
        content = calendar("UID:a\nDTSTART:20250616T090000\nSUMMARY:Gym")

        (record,) = parse_event_feed(content)

        assert record.start == datetime.datetime(2025, 6, 16, 9, 0, tzinfo=UTC)

    def test_parse_when_utc_time_then_expressed_in_default_zone(self):
        """Test a Z-suffixed start keeps its instant but moves to the default zone."""
        content = calendar("UID:a\nDTSTART:20250616T020000Z\nSUMMARY:Call")

        (record,) = parse_event_feed(content, default_timezone="Asia/Bangkok")

        assert record.start == datetime.datetime(2025, 6, 16, 2, 0, tzinfo=UTC)
        assert record.start.hour == 9

    def test_parse_when_unknown_tzid_then_utc(self):
        content = calendar("UID:a\nDTSTART;TZID=Mars/Olympus:20250616T090000\nSUMMARY:Launch")

        (record,) = parse_event_feed(content, default_timezone="Asia/Bangkok")

        assert record.start == datetime.datetime(2025, 6, 16, 9, 0, tzinfo=UTC)

    def test_parse_when_date_only_start_then_dropped(self):
        """Test all-day entries are not timed events."""
        content = calendar(
            "UID:a\nDTSTART;VALUE=DATE:20250616\nSUMMARY:Conference",
            "UID:b\nDTSTART:20250616T090000\nSUMMARY:Talk",
        )

        records = parse_event_feed(content)

        assert [r.uid for r in records] == ["b"]

    def test_parse_when_missing_uid_or_summary_then_dropped(self):
        content = calendar(
            "DTSTART:20250616T090000\nSUMMARY:Anonymous",
            "UID:b\nDTSTART:20250616T100000",
            "UID:c\nDTSTART:20250616T110000\nSUMMARY:Kept",
        )

        assert [r.uid for r in parse_event_feed(content)] == ["c"]

    def test_parse_when_start_unparsable_then_dropped(self):
        content = calendar(
            "UID:a\nDTSTART:2025-06-15Tbad\nSUMMARY:Broken",
            "UID:b\nDTSTART:20250616T090000\nSUMMARY:Kept",
        )

        records = parse_event_feed(content, default_timezone="Asia/Bangkok")

        assert [r.uid for r in records] == ["b"]
        assert records[0].start == datetime.datetime(2025, 6, 16, 9, 0, tzinfo=BANGKOK)

    def test_parse_when_start_in_dst_gap_then_dropped(self):
        """Test a local time skipped by a DST jump cannot be placed and is dropped."""
        content = calendar(
            "UID:gap\nDTSTART;TZID=America/New_York:20250309T023000\nSUMMARY:Ghost",
            "UID:ok\nDTSTART;TZID=America/New_York:20250309T033000\nSUMMARY:Real",
        )

        assert [r.uid for r in parse_event_feed(content)] == ["ok"]

    def test_parse_when_ambiguous_start_then_earlier_instant(self):
        content = calendar("UID:a\nDTSTART;TZID=America/New_York:20251102T013000\nSUMMARY:Twice")

        (record,) = parse_event_feed(content)

        assert record.start.astimezone(UTC) == datetime.datetime(2025, 11, 2, 5, 30, tzinfo=UTC)

    def test_parse_when_duplicate_uid_then_last_wins(self):
        content = calendar(
            "UID:a\nDTSTART:20250616T090000\nSUMMARY:Draft",
            "UID:a\nDTSTART:20250616T100000\nSUMMARY:Final",
        )

        (record,) = parse_event_feed(content)

        assert record.name == "Final"
        assert record.start.hour == 10

    def test_parse_when_recurrence_override_then_id_qualified(self):
        """Test an overridden instance gets its own id next to the master event."""
        content = calendar(
            "UID:weekly\nDTSTART;TZID=Asia/Bangkok:20250616T083000\nSUMMARY:Standup",
            "UID:weekly\nRECURRENCE-ID;TZID=Asia/Bangkok:20250623T083000\n"
            "DTSTART;TZID=Asia/Bangkok:20250623T100000\nSUMMARY:Standup (moved)",
        )

        records = parse_event_feed(content)

        assert [r.uid for r in records] == ["weekly", "weekly#2025-06-23T08:30:00+07:00"]

    def test_parse_when_not_icalendar_then_feed_parse_error(self):
        with pytest.raises(FeedParseError) as exc_info:
            parse_event_feed("HTTP/1.1 500 oops")

        assert exc_info.value.source == "event"


class TestResolveEventStart:
    """Tests for resolve_event_start."""

    def test_date_value_returns_none(self):
        assert resolve_event_start(datetime.date(2025, 6, 16), None, "UTC") is None

    def test_explicit_tzid_wins_over_default(self):
        wall = datetime.datetime(2025, 6, 16, 9, 0, tzinfo=BANGKOK)

        start = resolve_event_start(wall, "Asia/Bangkok", "America/New_York")

        assert start == wall
        assert start.hour == 9
