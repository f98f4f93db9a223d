"""Shared builders for taskview tests."""

from taskview.models import TaskRecord


def make_task(task_id: str, **fields) -> TaskRecord:
    """Build a task record with defaults for unspecified fields."""
    fields.setdefault("title", f"Task {task_id}")
    fields.setdefault("created_at", "2026-02-01T10:00:00+00:00")
    return TaskRecord(id=task_id, **fields)
