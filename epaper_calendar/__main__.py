"""Command-line entry for epaper_calendar."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from . import run_server
from .core.exceptions import ConfigurationError, EPaperCalendarError


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the epaper_calendar CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="epaper_calendar",
        description="E-paper calendar server - renders holidays, events and weather as PNG",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m epaper_calendar                     # Start server on default port (8080)
  python -m epaper_calendar --port 3000         # Start server on port 3000
  python -m epaper_calendar --env-file prod.env # Load defaults from another .env file
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 8080, or from EPAPER_WEB_PORT env var)",
    )
    parser.add_argument(
        "--env-file",
        metavar="PATH",
        help="Path to a .env file with default settings (default: ./.env)",
    )

    return parser


def main() -> NoReturn:
    """Run the epaper_calendar CLI."""
    parser = _create_parser()
    args = parser.parse_args()

    try:
        run_server(args)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    except EPaperCalendarError as exc:
        print(f"Startup failed: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
