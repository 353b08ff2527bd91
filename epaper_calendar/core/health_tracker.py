"""Health tracking for the epaper_calendar server."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import Any, Optional

# A refresh older than three cadences means the feeds are not being read.
STALE_REFRESH_SECONDS = 900


@dataclass
class HealthStatus:
    """Health status information for the server."""

    status: str  # "ok" or "degraded"
    server_time_iso: str
    uptime_seconds: int
    pid: int
    date_count: int
    last_refresh_success_age_seconds: Optional[int]
    last_refresh_error: Optional[str]
    consecutive_failures: int
    render: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "server_time_iso": self.server_time_iso,
            "server_status": {"uptime_s": self.uptime_seconds, "pid": self.pid},
            "data_status": {
                "date_count": self.date_count,
                "last_refresh_success_age_s": self.last_refresh_success_age_seconds,
                "last_refresh_error": self.last_refresh_error,
                "consecutive_failures": self.consecutive_failures,
            },
            "render": self.render,
        }


class HealthTracker:
    """Records refresh cycles and renders for the health endpoint."""

    def __init__(self, stale_after_seconds: int = STALE_REFRESH_SECONDS) -> None:
        self._start_time: float = time.time()
        self._stale_after = stale_after_seconds
        self._last_refresh_attempt: Optional[float] = None
        self._last_refresh_success: Optional[float] = None
        self._last_refresh_error: Optional[str] = None
        self._consecutive_failures = 0
        self._date_count = 0
        self._last_render: Optional[float] = None
        self._last_render_ok = False
        self._last_render_notes: Optional[str] = None

    def record_refresh_attempt(self) -> None:
        """Record that a refresh cycle started."""
        self._last_refresh_attempt = time.time()

    def record_refresh_success(self, date_count: int) -> None:
        """Record a refresh cycle where every feed succeeded.

        Args:
            date_count: Number of dates held by the store after the cycle
        """
        self._last_refresh_success = time.time()
        self._last_refresh_error = None
        self._consecutive_failures = 0
        self._date_count = date_count

    def record_refresh_failure(self, error: BaseException) -> None:
        """Record a refresh cycle that surfaced an error."""
        self._last_refresh_error = f"{type(error).__name__}: {error}"
        self._consecutive_failures += 1

    def record_render(self, ok: bool, notes: Optional[str] = None) -> None:
        """Record the outcome of a page render.

        Args:
            ok: Whether the render succeeded
            notes: Optional notes such as the output mode or the error
        """
        self._last_render = time.time()
        self._last_render_ok = ok
        self._last_render_notes = notes

    def get_uptime_seconds(self) -> int:
        return int(time.time() - self._start_time)

    def get_last_refresh_age_seconds(self) -> Optional[int]:
        """Seconds since last successful refresh, or None if never refreshed."""
        if self._last_refresh_success is None:
            return None
        return int(time.time() - self._last_refresh_success)

    def get_last_refresh_attempt_timestamp(self) -> Optional[float]:
        return self._last_refresh_attempt

    def get_consecutive_failures(self) -> int:
        return self._consecutive_failures

    def determine_overall_status(self) -> str:
        """Return "ok" or "degraded"."""
        age = self.get_last_refresh_age_seconds()
        if age is None or age > self._stale_after:
            return "degraded"
        return "ok"

    def get_health_status(self, current_time_iso: str) -> HealthStatus:
        """Get a snapshot of all health information.

        Args:
            current_time_iso: Current time in ISO format
        """
        last_render_age = None
        if self._last_render is not None:
            last_render_age = int(time.time() - self._last_render)

        return HealthStatus(
            status=self.determine_overall_status(),
            server_time_iso=current_time_iso,
            uptime_seconds=self.get_uptime_seconds(),
            pid=os.getpid(),
            date_count=self._date_count,
            last_refresh_success_age_seconds=self.get_last_refresh_age_seconds(),
            last_refresh_error=self._last_refresh_error,
            consecutive_failures=self._consecutive_failures,
            render={
                "last_render_age_s": last_render_age,
                "last_render_ok": self._last_render_ok,
                "last_render_notes": self._last_render_notes,
            },
        )
