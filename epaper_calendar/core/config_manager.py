"""Configuration management for the epaper_calendar server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .timezone_utils import normalize_timezone_name

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_SECONDS = 300
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Accepts an optional leading ``export``
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return result

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :]

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")
        if key:
            result[key] = val

    return result


class AppConfig(BaseModel):
    """Validated runtime configuration."""

    model_config = ConfigDict(frozen=True)

    ical_holiday: str = Field(..., description="URL of the holiday ICS feed")
    ical_event: str = Field(..., description="URL of the personal event ICS feed")
    ha_url: str = Field(..., description="Base URL of the Home Assistant instance")
    ha_token: str = Field(..., description="Home Assistant long-lived access token")
    default_timezone: str = Field(
        default="UTC", description="Zone for event times without an explicit TZID"
    )
    display_timezone: str = Field(
        default="Asia/Bangkok", description="Zone used to decide 'today' and format times"
    )
    access_token: Optional[str] = Field(
        default=None, description="Token required on every HTTP request (None disables auth)"
    )
    server_bind: str = Field(default="0.0.0.0", description="Host to bind")  # nosec B104
    server_port: int = Field(default=8080, ge=1, le=65535, description="Port to bind")
    refresh_interval_seconds: int = Field(
        default=DEFAULT_REFRESH_INTERVAL_SECONDS, ge=1, description="Wall-clock refresh cadence"
    )
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0, description="Per-request HTTP timeout"
    )
    font_dir: Optional[Path] = Field(
        default=None, description="Directory holding the TrueType fonts (None uses Pillow's default)"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("default_timezone", "display_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        resolved = normalize_timezone_name(value)
        if resolved is None:
            raise ValueError(f"unknown timezone {value!r}")
        return resolved

    @field_validator("ha_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


# Environment variable -> AppConfig field
_ENV_FIELDS: dict[str, str] = {
    "EPAPER_ICAL_HOLIDAY": "ical_holiday",
    "EPAPER_ICAL_EVENT": "ical_event",
    "EPAPER_HA_URL": "ha_url",
    "EPAPER_HA_TOKEN": "ha_token",
    "EPAPER_TIMEZONE": "default_timezone",
    "EPAPER_DISPLAY_TIMEZONE": "display_timezone",
    "EPAPER_ACCESS_TOKEN": "access_token",
    "EPAPER_WEB_HOST": "server_bind",
    "EPAPER_FONT_DIR": "font_dir",
    "EPAPER_LOG_LEVEL": "log_level",
}

_ENV_INT_FIELDS: dict[str, str] = {
    "EPAPER_WEB_PORT": "server_port",
    "EPAPER_REFRESH_INTERVAL": "refresh_interval_seconds",
}

_ENV_FLOAT_FIELDS: dict[str, str] = {
    "EPAPER_REQUEST_TIMEOUT": "request_timeout",
}


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []
        for key, val in parse_env_file(self.env_file_path).items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))
        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build a raw configuration dictionary from environment variables.

        Invalid numeric values are logged and ignored so the default applies.

        Returns:
            Dictionary of AppConfig field values found in the environment
        """
        cfg: dict[str, Any] = {}

        for env_key, field in _ENV_FIELDS.items():
            value = os.environ.get(env_key)
            if value:
                cfg[field] = value

        for env_key, field in _ENV_INT_FIELDS.items():
            value = os.environ.get(env_key)
            if not value:
                continue
            try:
                cfg[field] = int(value)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_key, value)

        for env_key, field in _ENV_FLOAT_FIELDS.items():
            value = os.environ.get(env_key)
            if not value:
                continue
            try:
                cfg[field] = float(value)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_key, value)

        return cfg

    def load_full_config(self, **overrides: Any) -> AppConfig:
        """Load .env file and build a validated configuration.

        This is the main entry point for loading configuration.

        Args:
            **overrides: Field values that take precedence over the environment

        Returns:
            Validated AppConfig

        Raises:
            ConfigurationError: If required values are missing or invalid
        """
        self.load_env_file()
        raw = self.build_config_from_env()
        raw.update(overrides)
        return build_app_config(raw)


def build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Validate a raw configuration mapping.

    Raises:
        ConfigurationError: With one line per invalid or missing field
    """
    try:
        return AppConfig(**raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc

