"""Timestamp normalization for task due dates and record timestamps."""

from datetime import date, datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_timestamp(value: Any) -> datetime | None:
    """Normalize a backend timestamp to an aware UTC datetime.

    Args:
        value: ISO 8601 string, date-only string, datetime, date, or None

    Returns:
        Aware UTC datetime, or None when the value is absent, unparseable,
        or has no UTC equivalent inside the datetime range

    Rules:
        "2026-02-09"                -> 2026-02-09T00:00:00+00:00
        "2026-02-09T10:00:00"       -> naive, read as UTC
        "2026-02-09T10:00:00Z"      -> trailing Z accepted
        "2026-02-09T19:00:00+09:00" -> converted to UTC
        "9999-12-31T23:00:00-05:00" -> None (past datetime.max in UTC)
        "", "not a date", 42        -> None
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    return _as_utc(parsed)


def _as_utc(value: datetime) -> datetime | None:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None
