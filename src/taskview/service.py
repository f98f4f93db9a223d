"""Data service contract and a JSON-file implementation."""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol

from taskview.dates import normalize_timestamp, utc_now
from taskview.errors import ServiceError, ValidationError
from taskview.members import MEMBER_KIND_FLAT, normalize_member
from taskview.models import Priority, Project, TaskRecord, TaskStatus, TeamMember
from taskview.storage import DataFile, load_data, save_data

TASK_FETCH_LIMIT = 1000

_VALID_STATUSES = {status.value for status in TaskStatus}
_VALID_PRIORITIES = {priority.value for priority in Priority}
_UPDATABLE_FIELDS = {
    "title",
    "description",
    "status",
    "priority",
    "due_date",
    "project_id",
    "assigned_to",
}
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class DataService(Protocol):
    """Backend operations the task list controller depends on."""

    def fetch_tasks(self, user_id: str) -> list[TaskRecord]: ...

    def fetch_projects(self, user_id: str) -> list[Project]: ...

    def create_task(self, user_id: str, payload: Mapping[str, Any]) -> TaskRecord: ...

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> TaskRecord: ...

    def update_status(self, task_id: str, status: str) -> TaskRecord: ...

    def delete_task(self, task_id: str) -> None: ...


def _validate_status(status: Any) -> str:
    if isinstance(status, TaskStatus):
        return status.value
    if status not in _VALID_STATUSES:
        raise ValidationError(f"Invalid task status: {status}")
    return status


def _validate_priority(priority: Any) -> str:
    if isinstance(priority, Priority):
        return priority.value
    if priority not in _VALID_PRIORITIES:
        raise ValidationError(f"Invalid task priority: {priority}")
    return priority


def _optional(value: Any) -> str | None:
    return None if value is None or value == "" else str(value)


def _newest_first_key(task: TaskRecord) -> datetime:
    return normalize_timestamp(task.created_at) or _EPOCH


class JsonDataService:
    """Data service backed by a single JSON file.

    Every call reloads the file so that edits made by another process are
    seen; every mutation writes it back before returning.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def _load(self) -> DataFile:
        return load_data(self.path)

    def _member_project_ids(self, data_file: DataFile, user_id: str) -> set[str]:
        return {
            str(row["project_id"])
            for row in data_file.members
            if row.get("project_id") is not None and str(row.get("user_id")) == user_id
        }

    def fetch_tasks(self, user_id: str) -> list[TaskRecord]:
        """Tasks the user created, is assigned, or can see through a project."""
        data_file = self._load()
        project_ids = self._member_project_ids(data_file, user_id)
        visible = [
            task
            for task in data_file.tasks
            if task.user_id == user_id
            or task.assigned_to == user_id
            or (task.project_id is not None and task.project_id in project_ids)
        ]
        visible.sort(key=_newest_first_key, reverse=True)
        return visible[:TASK_FETCH_LIMIT]

    def fetch_projects(self, user_id: str) -> list[Project]:
        """Projects the user is a member of, sorted by name."""
        data_file = self._load()
        project_ids = self._member_project_ids(data_file, user_id)
        projects = [p for p in data_file.projects if p.id in project_ids]
        projects.sort(key=lambda p: p.name)
        return projects

    def fetch_members(self, project_ids: list[str]) -> list[TeamMember]:
        """Normalized members of the given projects."""
        wanted = set(project_ids)
        data_file = self._load()
        members = []
        for row in data_file.members:
            if str(row.get("project_id")) not in wanted:
                continue
            tagged = row if "kind" in row else {"kind": MEMBER_KIND_FLAT, **row}
            members.append(normalize_member(tagged))
        return members

    def create_task(self, user_id: str, payload: Mapping[str, Any]) -> TaskRecord:
        """Insert a task owned by ``user_id`` and return the stored row."""
        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Task title must be a non-empty string")

        now = utc_now().isoformat()
        task = TaskRecord(
            id=str(uuid.uuid4()),
            title=title,
            description=str(payload.get("description") or ""),
            status=_validate_status(payload.get("status", TaskStatus.PENDING.value)),
            priority=_validate_priority(payload.get("priority", Priority.MEDIUM.value)),
            due_date=_optional(payload.get("due_date")),
            project_id=_optional(payload.get("project_id")),
            assigned_to=_optional(payload.get("assigned_to")),
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )

        data_file = self._load()
        data_file.tasks.append(task)
        save_data(self.path, data_file)
        return task

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> TaskRecord:
        """Apply field updates and return the stored row."""
        invalid_fields = set(updates.keys()) - _UPDATABLE_FIELDS
        if invalid_fields:
            raise ValidationError(f"Invalid task fields: {', '.join(sorted(invalid_fields))}")

        changes: dict[str, Any] = {}
        for key, value in updates.items():
            if key == "status":
                changes[key] = _validate_status(value)
            elif key == "priority":
                changes[key] = _validate_priority(value)
            elif key in ("title", "description"):
                changes[key] = "" if value is None else str(value)
            else:
                changes[key] = _optional(value)
        changes["updated_at"] = utc_now().isoformat()

        data_file = self._load()
        for i, task in enumerate(data_file.tasks):
            if task.id == task_id:
                updated = replace(task, **changes)
                data_file.tasks[i] = updated
                save_data(self.path, data_file)
                return updated

        raise ServiceError(f"Task not found: {task_id}")

    def update_status(self, task_id: str, status: str) -> TaskRecord:
        """Change only the status of a task."""
        return self.update_task(task_id, {"status": status})

    def delete_task(self, task_id: str) -> None:
        """Delete a task by id."""
        data_file = self._load()
        remaining = [task for task in data_file.tasks if task.id != task_id]
        if len(remaining) == len(data_file.tasks):
            raise ServiceError(f"Task not found: {task_id}")
        data_file.tasks = remaining
        save_data(self.path, data_file)
