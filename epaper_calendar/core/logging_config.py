"""
Central logging configuration for epaper_calendar.

Quietens verbose third-party loggers while keeping the package's own INFO
messages (refresh outcomes, changes, startup) visible.
"""

import logging
import os
from typing import Optional

# Third-party loggers that flood DEBUG output on every refresh or request
_THIRD_PARTY_LEVELS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "aiohttp.server": logging.WARNING,
    "aiohttp.web": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
    "icalendar": logging.WARNING,
    "PIL": logging.WARNING,
}


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logger levels for epaper_calendar.

    Args:
        debug_mode: Whether to enable debug logging for epaper_calendar modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        EPAPER_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        EPAPER_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("EPAPER_DEBUG", "").lower() in ("1", "true", "yes", "on")
    env_log_level = os.getenv("EPAPER_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    else:
        final_debug = env_debug or debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)
    # Keep the colourised handler installed by _init_logging when present.
    if not root_logger.handlers:
        logging.basicConfig(
            level=root_level,
            format="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
        )

    for name, level in _THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    logging.getLogger("epaper_calendar").setLevel(logging.DEBUG if final_debug else root_level)
    logging.getLogger(__name__).debug(
        "Logging configured: root=%s debug=%s",
        logging.getLevelName(root_level),
        final_debug,
    )
