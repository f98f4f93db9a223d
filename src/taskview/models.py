"""Typed domain models and read-model DTOs for taskview."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from taskview.errors import ValidationError


class TaskStatus(str, Enum):
    """Backend task statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class DisplayStatus(str, Enum):
    """Statuses shown by task list views."""

    TODO = "todo"
    PROGRESS = "progress"
    COMPLETE = "complete"


class Priority(str, Enum):
    """Task priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FilterMode(str, Enum):
    """Task list filter modes."""

    ALL = "all"
    PERSONAL = "personal"
    PROJECT = "project"
    ASSIGNED = "assigned"


_DISPLAY_BY_BACKEND = {
    TaskStatus.PENDING.value: DisplayStatus.TODO,
    TaskStatus.IN_PROGRESS.value: DisplayStatus.PROGRESS,
    TaskStatus.COMPLETED.value: DisplayStatus.COMPLETE,
}

_BACKEND_BY_DISPLAY = {
    display.value: TaskStatus(backend) for backend, display in _DISPLAY_BY_BACKEND.items()
}

_VALID_PRIORITIES = {priority.value for priority in Priority}


def display_status_for(status: Any) -> DisplayStatus:
    """Map a backend status to its display status; unknown maps to todo."""
    if isinstance(status, TaskStatus):
        status = status.value
    return _DISPLAY_BY_BACKEND.get(status, DisplayStatus.TODO)


def backend_status_for(display_status: Any) -> TaskStatus:
    """Map a display status to its backend status; unknown maps to pending."""
    if isinstance(display_status, DisplayStatus):
        display_status = display_status.value
    return _BACKEND_BY_DISPLAY.get(display_status, TaskStatus.PENDING)


def priority_for(value: Any) -> Priority:
    """Map a stored priority to its enum; unknown maps to medium."""
    if isinstance(value, Priority):
        return value
    try:
        return Priority(value)
    except ValueError:
        return Priority.MEDIUM


def parse_filter_mode(value: Any) -> FilterMode | None:
    """Return the matching filter mode, or None if unrecognized."""
    if isinstance(value, FilterMode):
        return value
    try:
        return FilterMode(value)
    except ValueError:
        return None


def _optional_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True)
class TaskRecord:
    """Task row as returned by the data service."""

    id: str
    title: str
    description: str = ""
    status: str = TaskStatus.PENDING.value
    priority: str = Priority.MEDIUM.value
    due_date: str | None = None
    project_id: str | None = None
    assigned_to: str | None = None
    user_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_personal(self) -> bool:
        return self.project_id is None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TaskRecord":
        """Create a task record from a backend row.

        Only the id is required. Status is kept verbatim so that unknown
        values survive a round trip; priority falls back to medium.
        """
        raw_id = payload.get("id")
        if raw_id is None or raw_id == "":
            raise ValidationError("Task missing required field: id")

        priority = payload.get("priority")
        if priority not in _VALID_PRIORITIES:
            priority = Priority.MEDIUM.value

        status = payload.get("status")
        return cls(
            id=str(raw_id),
            title="" if payload.get("title") is None else str(payload["title"]),
            description=""
            if payload.get("description") is None
            else str(payload["description"]),
            status=TaskStatus.PENDING.value if status is None else str(status),
            priority=priority,
            due_date=_optional_str(payload.get("due_date")),
            project_id=_optional_id(payload.get("project_id")),
            assigned_to=_optional_id(payload.get("assigned_to")),
            user_id=_optional_id(payload.get("user_id")),
            created_at=_optional_str(payload.get("created_at")),
            updated_at=_optional_str(payload.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize task record to a backend row."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "due_date": self.due_date,
            "project_id": self.project_id,
            "assigned_to": self.assigned_to,
            "user_id": self.user_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class DisplayTask:
    """Task record with derived display fields."""

    task: TaskRecord
    display_status: DisplayStatus
    due_date: datetime | None = None


@dataclass(frozen=True)
class ViewContext:
    """Inputs that decide which tasks a view shows."""

    current_user_id: str | None
    filter_mode: FilterMode = FilterMode.ALL
    selected_project_id: str | None = None
    search_query: str = ""


@dataclass(frozen=True)
class TaskCounts:
    """Aggregate counts over the full task list.

    ``due_today`` counts open tasks due on the current UTC calendar day;
    ``on_time_completed`` counts completed tasks last updated no later than
    their due date.
    """

    total: int = 0
    personal: int = 0
    project: int = 0
    assigned: int = 0
    completed: int = 0
    overdue: int = 0
    due_today: int = 0
    on_time_completed: int = 0


@dataclass(frozen=True)
class TaskBuckets:
    """Tasks categorized by ownership."""

    all: tuple[DisplayTask, ...] = ()
    personal: tuple[DisplayTask, ...] = ()
    project: tuple[DisplayTask, ...] = ()
    assigned: tuple[DisplayTask, ...] = ()


@dataclass(frozen=True)
class ProjectionResult:
    """Categorized view of a task list for one view context.

    ``histogram`` and ``priorities`` are read-only mappings shared by every
    result built from the same scan. ``upcoming`` holds the earliest-due open
    tasks of the full list, independent of filter and search.
    """

    context: ViewContext
    visible: tuple[DisplayTask, ...]
    buckets: TaskBuckets
    histogram: Mapping[DisplayStatus, int]
    counts: TaskCounts
    priorities: Mapping[Priority, int]
    upcoming: tuple[DisplayTask, ...] = ()


@dataclass
class Project:
    """Project option offered to the project filter."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Project":
        raw_id = payload.get("id")
        if raw_id is None or raw_id == "":
            raise ValidationError("Project missing required field: id")
        return cls(id=str(raw_id), name=str(payload.get("name") or ""))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class TeamMember:
    """Canonical project member shape."""

    user_id: str
    project_id: str | None
    name: str = "Unknown User"
    email: str = ""
    avatar_url: str | None = None
    role: str = "member"


@dataclass
class UserProfile:
    """Signed-in user's profile as cached by the session."""

    id: str
    email: str | None = None
    name: str | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        """Profile name, then email local part, then "User"."""
        if self.name:
            return self.name
        if self.email and self.email.split("@")[0]:
            return self.email.split("@")[0]
        return "User"
