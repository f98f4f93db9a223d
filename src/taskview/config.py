"""Settings loading and validation."""

import json
import logging
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from taskview.errors import ConfigError
from taskview.logging import log_event
from taskview.projector import DEFAULT_OVERDUE_RESOLUTION
from taskview.session import DEFAULT_SESSION_TTL_SECONDS


@dataclass
class Settings:
    """Runtime settings for taskview."""

    data_path: str
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    overdue_resolution_seconds: int | None = DEFAULT_OVERDUE_RESOLUTION
    log_file: str | None = None
    timezone: str | None = None


def map_path(path: str, settings_dir: str | None = None) -> str:
    """Resolve a settings path to an absolute path string.

    ~ or ~/...  -> user home directory
    Absolute    -> used as-is
    Relative    -> resolved against settings_dir, or the working directory
    """
    if "\0" in path:
        raise ConfigError("Path cannot contain NUL bytes")

    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return str(candidate.resolve())
    base = Path(settings_dir) if settings_dir is not None else Path.cwd()
    return str((base / candidate).resolve())


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_settings(raw: Any) -> None:
    """Validate settings structure.

    Raises:
        ConfigError: If settings are invalid
    """
    if not isinstance(raw, dict):
        raise ConfigError("Settings must be a JSON object")

    data_path = raw.get("data_path")
    if not isinstance(data_path, str) or not data_path:
        raise ConfigError("data_path must be a non-empty string")

    if "session_ttl_seconds" in raw and not _is_positive_int(raw["session_ttl_seconds"]):
        raise ConfigError("session_ttl_seconds must be a positive integer")

    resolution = raw.get("overdue_resolution_seconds", DEFAULT_OVERDUE_RESOLUTION)
    if resolution is not None and not _is_positive_int(resolution):
        raise ConfigError("overdue_resolution_seconds must be a positive integer or null")

    log_file = raw.get("log_file")
    if log_file is not None and (not isinstance(log_file, str) or not log_file):
        raise ConfigError("log_file must be a non-empty string")

    timezone_str = raw.get("timezone")
    if timezone_str is not None:
        if not isinstance(timezone_str, str) or not timezone_str:
            raise ConfigError("timezone must be a non-empty string")
        try:
            ZoneInfo(timezone_str)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Invalid timezone: {timezone_str}") from e

    unknown = set(raw.keys()) - {
        "data_path",
        "session_ttl_seconds",
        "overdue_resolution_seconds",
        "log_file",
        "timezone",
    }
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")


def load_settings(path: str) -> Settings:
    """Load and validate settings from a JSON file.

    Relative paths inside the file are resolved against its directory.

    Raises:
        ConfigError: If the file is missing, malformed, or invalid
    """
    settings_path = Path(map_path(path))
    if not settings_path.exists():
        raise ConfigError(f"Settings not found: {settings_path}")

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in settings file: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read settings file: {settings_path}: {e}") from e

    validate_settings(raw)

    settings_dir = str(settings_path.parent)
    log_file = raw.get("log_file")
    return Settings(
        data_path=map_path(raw["data_path"], settings_dir),
        session_ttl_seconds=raw.get("session_ttl_seconds", DEFAULT_SESSION_TTL_SECONDS),
        overdue_resolution_seconds=raw.get(
            "overdue_resolution_seconds", DEFAULT_OVERDUE_RESOLUTION
        ),
        log_file=None if log_file is None else map_path(log_file, settings_dir),
        timezone=raw.get("timezone"),
    )


def resolve_timezone(settings: Settings) -> tzinfo:
    """Return the configured timezone, else the system timezone, else UTC."""
    if settings.timezone:
        try:
            return ZoneInfo(settings.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Invalid timezone: {settings.timezone}") from e
    try:
        from tzlocal import get_localzone
        return get_localzone()
    except Exception as e:
        log_event(
            "timezone_detection_failed",
            level=logging.WARNING,
            error_type=type(e).__name__,
            error=str(e),
        )
        return ZoneInfo("UTC")
