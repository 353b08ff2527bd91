"""Custom exception hierarchy for epaper_calendar.

Specific exception types let the refresh scheduler and the HTTP layer tell a
failing upstream feed apart from a rendering problem and map each to the right
log level and HTTP status.
"""

from __future__ import annotations

from typing import Optional


class EPaperCalendarError(Exception):
    """Base exception for all epaper_calendar errors."""


class ConfigurationError(EPaperCalendarError):
    """Configuration is missing or invalid.

    Raised when:
    - A required environment variable is not set
    - A value cannot be coerced to the expected type
    - A timezone name cannot be resolved

    Raised at startup, before the server binds.
    """


class FetchError(EPaperCalendarError):
    """Reading a whole feed failed.

    Raised when:
    - The transport fails (DNS, connection refused, timeout)
    - The upstream answers with a non-2xx status
    - The weather body cannot be decoded into a snapshot

    Individual malformed calendar entries are not fetch errors; they are
    dropped by the parser.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str = "unknown",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class FeedParseError(FetchError):
    """A feed body could not be parsed as a calendar at all."""


class RenderError(EPaperCalendarError):
    """Producing the e-paper image failed.

    Raised when:
    - A configured font file is missing or unreadable
    - The canvas cannot be encoded to PNG

    Should result in an opaque HTTP 500 response.
    """
