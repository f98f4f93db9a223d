"""Tests for logging helpers."""

import json
import logging

from helpers import make_task
from taskview.logging import StructuredTextFormatter, log_event, setup_logging, summarize_text
from taskview.models import FilterMode
from taskview.projector import TaskProjector


def _events(caplog) -> list[dict]:
    return [json.loads(record.getMessage()) for record in caplog.records if record.name == "taskview"]


class TestLogEvent:
    """Test structured event emission."""

    def test_payload_is_json(self, caplog):
        """Test that fields are serialized into one JSON line."""
        with caplog.at_level(logging.INFO, logger="taskview"):
            log_event("demo", user_id="u1", mode=FilterMode.PROJECT, ids=("a", "b"))

        (event,) = _events(caplog)
        assert event["event"] == "demo"
        assert event["user_id"] == "u1"
        assert event["mode"] == "project"
        assert event["ids"] == ["a", "b"]
        assert "ts" in event

    def test_filtered_by_level(self, caplog):
        """Test that events below the logger level are dropped."""
        with caplog.at_level(logging.WARNING, logger="taskview"):
            log_event("quiet", level=logging.DEBUG)

        assert _events(caplog) == []

    def test_projector_events(self, caplog, frozen_time):
        """Test that scans, cache hits, and invalidations are logged."""
        projector = TaskProjector([make_task("a")], "u1")
        with caplog.at_level(logging.DEBUG, logger="taskview"):
            projector.project("bogus")
            projector.project("all")
            projector.replace_tasks([])

        names = [event["event"] for event in _events(caplog)]
        assert names == [
            "filter_mode_fallback",
            "projection_scan",
            "projection_cache_hit",
            "projection_invalidated",
        ]


class TestSetupLogging:
    """Test setup_logging function."""

    def test_without_file_disables_logging(self):
        """Test that logging is off when no file is given."""
        setup_logging(None)

        assert logging.getLogger("taskview").isEnabledFor(logging.INFO) is False
        assert logging.getLogger("taskview").isEnabledFor(logging.CRITICAL) is False

    def test_with_file(self, tmp_path):
        """Test that events are written as structured blocks."""
        log_path = tmp_path / "logs" / "run.log"

        setup_logging(str(log_path))
        log_event("first", count=1)
        log_event("second", note="two\nlines")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_path.read_text(encoding="utf-8")
        assert "=== first ===" in text
        assert "count: 1" in text
        assert "note: two\\nlines" in text
        assert "\n\n=== second ===" in text


class TestStructuredTextFormatter:
    """Test StructuredTextFormatter."""

    def _record(self, name: str, msg: str) -> logging.LogRecord:
        return logging.LogRecord(
            name=name,
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg=msg,
            args=(),
            exc_info=None,
        )

    def test_plain_message_uses_logger_name(self):
        """Test that non-JSON messages are titled by logger name."""
        result = StructuredTextFormatter().format(self._record("taskview.cli", "Plain text"))

        assert result.startswith("=== taskview.cli ===")
        assert "message: Plain text" in result

    def test_json_message_fields(self):
        """Test that JSON payload keys become lines."""
        result = StructuredTextFormatter().format(
            self._record("taskview", '{"event":"tasks_loaded","task_count":3,"user_id":null}')
        )

        assert result.startswith("=== tasks_loaded ===")
        assert "task_count: 3" in result
        assert "user_id" not in result


class TestSummarizeText:
    """Test summarize_text function."""

    def test_collapses_whitespace(self):
        """Test that whitespace runs collapse to single spaces."""
        assert summarize_text("  a \n b\t c ") == "a b c"
        assert summarize_text(None) == ""
