"""Pytest configuration and fixtures for taskview tests."""

import json
import logging
from datetime import datetime, timezone

import pytest

from helpers import make_task
from taskview.session import SessionService

FROZEN_NOW = "2026-02-09 10:00:00"


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo global logging changes made by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.disable(logging.NOTSET)


@pytest.fixture
def frozen_time():
    """Freeze time for consistent time-dependent tests."""
    from freezegun import freeze_time
    with freeze_time(FROZEN_NOW) as frozen:
        yield frozen


@pytest.fixture
def sample_tasks():
    """Personal, project, and assigned tasks across all statuses."""
    return [
        make_task("a", title="Buy milk", status="pending", user_id="u1"),
        make_task("b", title="Write report", project_id="p1", status="in-progress", user_id="u2"),
        make_task(
            "c",
            title="Review PR",
            project_id="p1",
            assigned_to="u1",
            status="completed",
            user_id="u2",
        ),
        make_task(
            "d",
            title="Plan sprint",
            project_id="p2",
            assigned_to="u1",
            status="pending",
            due_date="2026-02-08",
            user_id="u2",
        ),
    ]


@pytest.fixture
def sample_data():
    """Data file payload with two users, two projects, and memberships."""
    return {
        "tasks": [
            {
                "id": "t1",
                "title": "Buy milk",
                "description": "",
                "status": "pending",
                "priority": "low",
                "due_date": None,
                "project_id": None,
                "assigned_to": None,
                "user_id": "u1",
                "created_at": "2026-02-01T10:00:00+00:00",
                "updated_at": "2026-02-01T10:00:00+00:00",
            },
            {
                "id": "t2",
                "title": "Write report",
                "description": "milk the deadline",
                "status": "in-progress",
                "priority": "high",
                "due_date": "2026-02-08",
                "project_id": "p1",
                "assigned_to": None,
                "user_id": "u2",
                "created_at": "2026-02-03T10:00:00+00:00",
                "updated_at": "2026-02-03T10:00:00+00:00",
            },
            {
                "id": "t3",
                "title": "Review PR",
                "description": "",
                "status": "completed",
                "priority": "medium",
                "due_date": None,
                "project_id": "p1",
                "assigned_to": "u1",
                "user_id": "u2",
                "created_at": "2026-02-02T10:00:00+00:00",
                "updated_at": "2026-02-02T10:00:00+00:00",
            },
            {
                "id": "t4",
                "title": "Secret plan",
                "description": "",
                "status": "pending",
                "priority": "medium",
                "due_date": None,
                "project_id": "p2",
                "assigned_to": None,
                "user_id": "u2",
                "created_at": "2026-02-04T10:00:00+00:00",
                "updated_at": "2026-02-04T10:00:00+00:00",
            },
        ],
        "projects": [
            {"id": "p1", "name": "Website"},
            {"id": "p2", "name": "Apollo"},
        ],
        "members": [
            {"project_id": "p1", "user_id": "u1", "role": "member", "user_name": "Ann"},
            {"project_id": "p1", "user_id": "u2", "role": "owner", "user_name": "Bob"},
            {"project_id": "p2", "user_id": "u2", "role": "owner", "user_name": "Bob"},
        ],
    }


@pytest.fixture
def data_path(tmp_path, sample_data):
    """Write sample data to a JSON file and return its path."""
    path = tmp_path / "tasks.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(sample_data, f, indent=2)
    return path


@pytest.fixture
def fixed_clock():
    """Clock pinned to the frozen test time."""
    now = datetime(2026, 2, 9, 10, 0, 0, tzinfo=timezone.utc)
    return lambda: now


@pytest.fixture
def session():
    """Session signed in as u1."""
    service = SessionService()
    service.sign_in("u1")
    return service
