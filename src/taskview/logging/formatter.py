"""Structured plaintext log formatter implementation."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Keys shown first, in this order; remaining keys follow alphabetically.
_LEADING_KEYS = ("ts_utc", "level", "logger", "ts")


class StructuredTextFormatter(logging.Formatter):
    """Format all log records as human-readable structured blocks."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        # Blank line between entries, none after the last one.
        self._first_entry = True

    @staticmethod
    def _format_value(value: Any) -> str:
        return str(value).replace("\n", "\\n")

    @staticmethod
    def _ordered_keys(data: dict[str, Any]) -> list[str]:
        leading = [k for k in _LEADING_KEYS if k in data and data[k] is not None]
        remaining = sorted(
            k for k in data.keys() if k not in _LEADING_KEYS and data[k] is not None
        )
        return leading + remaining

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        message = record.getMessage()
        parsed = None
        if message.startswith("{") and message.endswith("}"):
            try:
                parsed = json.loads(message)
            except ValueError:
                parsed = None

        if isinstance(parsed, dict):
            base.update(parsed)
        else:
            base["event"] = record.name
            base["message"] = message

        event_name = str(base.pop("event", record.name))
        lines = [f"=== {event_name} ==="]
        for key in self._ordered_keys(base):
            lines.append(f"{key}: {self._format_value(base[key])}")

        if record.exc_info:
            lines.append("traceback:")
            lines.append(self.formatException(record.exc_info))

        text = "\n".join(lines)
        if self._first_entry:
            self._first_entry = False
            return text
        return "\n" + text
