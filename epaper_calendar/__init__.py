"""epaper_calendar - calendar and weather snapshot server for three-colour e-paper panels.

The package keeps an in-memory snapshot of holiday, event and weather feeds and
renders it into a 400x300 PNG suitable for a black/white/red e-paper display.
Imports are kept light here so ``python -m epaper_calendar --help`` works
without pulling in the server stack.
"""

__version__ = "0.1.0"

from typing import Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Sets a colourised formatter and a level so that import-time errors and early
    startup messages are visible. Honors EPAPER_DEBUG (truthy values: "1",
    "true", "yes", "on") which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("EPAPER_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only add a handler once to avoid duplicate output on repeated calls.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message, only the level is colourised
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def run_server(args: Optional[object] = None) -> None:
    """Load configuration and start the epaper_calendar server.

    Args:
        args: Optional command line namespace (``--port``, ``--env-file``)

    Behavior:
    - Initialize console logging early using EPAPER_LOG_LEVEL if present.
    - Load .env defaults and build an AppConfig from the environment.
    - Apply command line overrides, then delegate to ``start_server``.
    """
    import logging
    import os
    from pathlib import Path

    _init_logging(os.environ.get("EPAPER_LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    from epaper_calendar.api.server import start_server
    from epaper_calendar.core.config_manager import ConfigManager

    env_file = getattr(args, "env_file", None)
    manager = ConfigManager(Path(env_file) if env_file else None)

    overrides: dict = {}
    port = getattr(args, "port", None)
    if port is not None:
        overrides["server_port"] = int(port)
        logger.debug("Applied command line port override: %d", port)

    config = manager.load_full_config(**overrides)

    root = logging.getLogger()
    if root.level != logging.DEBUG:
        root.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    # Only surface non-secret keys.
    logger.debug(
        "Resolved configuration (diagnostic): %s",
        config.model_dump(include={"server_bind", "server_port", "display_timezone", "log_level"}),
    )
    start_server(config)
