"""Unit tests for epaper_calendar.core.health_tracker."""

from unittest.mock import patch

import pytest

from epaper_calendar.core.health_tracker import HealthTracker

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestHealthTracker:
    """Tests for HealthTracker."""

    def test_never_refreshed_is_degraded(self):
        tracker = HealthTracker()

        status = tracker.get_health_status("2025-06-16T02:00:00+00:00")

        assert status.status == "degraded"
        assert status.last_refresh_success_age_seconds is None

    def test_recent_success_is_ok(self):
        tracker = HealthTracker()
        tracker.record_refresh_success(date_count=12)

        status = tracker.get_health_status("now")

        assert status.status == "ok"
        assert status.date_count == 12

    def test_stale_success_is_degraded(self):
        """Test a success older than the staleness window no longer counts."""
        tracker = HealthTracker(stale_after_seconds=900)
        with patch("epaper_calendar.core.health_tracker.time.time", return_value=1_000.0):
            tracker.record_refresh_success(date_count=1)
        with patch("epaper_calendar.core.health_tracker.time.time", return_value=1_000.0 + 901):
            assert tracker.determine_overall_status() == "degraded"

    def test_failures_counted_until_success(self):
        tracker = HealthTracker()
        tracker.record_refresh_failure(RuntimeError("one"))
        tracker.record_refresh_failure(RuntimeError("two"))

        assert tracker.get_consecutive_failures() == 2
        assert tracker.get_health_status("now").last_refresh_error == "RuntimeError: two"

        tracker.record_refresh_success(date_count=3)

        assert tracker.get_consecutive_failures() == 0
        assert tracker.get_health_status("now").last_refresh_error is None

    def test_failure_after_success_keeps_status_ok_while_fresh(self):
        tracker = HealthTracker()
        tracker.record_refresh_success(date_count=3)
        tracker.record_refresh_failure(RuntimeError("blip"))

        assert tracker.determine_overall_status() == "ok"

    def test_to_dict_shape(self):
        tracker = HealthTracker()
        tracker.record_refresh_attempt()
        tracker.record_render(True, "full")

        body = tracker.get_health_status("2025-06-16T02:00:00+00:00").to_dict()

        assert set(body) == {"status", "server_time_iso", "server_status", "data_status", "render"}
        assert body["server_status"]["pid"] > 0
        assert body["data_status"]["consecutive_failures"] == 0
        assert body["render"]["last_render_ok"] is True
        assert body["render"]["last_render_notes"] == "full"
        assert tracker.get_last_refresh_attempt_timestamp() is not None
        assert tracker.get_uptime_seconds() >= 0
