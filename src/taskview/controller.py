"""Task list controller: owns the task list and keeps the projector in sync."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Mapping

from taskview.errors import AppError
from taskview.logging import log_event, summarize_text
from taskview.models import FilterMode, ProjectionResult, Project, TaskRecord, backend_status_for
from taskview.projector import DEFAULT_OVERDUE_RESOLUTION, TaskProjector
from taskview.results import Err, MutationResult, Ok
from taskview.service import DataService
from taskview.session import SessionService

TaskList = tuple[TaskRecord, ...]

_EDITABLE_FIELDS = {
    "title",
    "description",
    "status",
    "priority",
    "due_date",
    "project_id",
    "assigned_to",
}
_NULLABLE_FIELDS = {"due_date", "project_id", "assigned_to"}


def to_backend_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Translate view-layer field values into backend values.

    Display statuses become backend statuses (unknown -> pending) and empty
    strings in nullable fields become None.

    Raises:
        ValueError: If an unknown field is present
    """
    invalid_fields = set(changes.keys()) - _EDITABLE_FIELDS
    if invalid_fields:
        raise ValueError(f"Invalid task fields: {', '.join(sorted(invalid_fields))}")

    backend: dict[str, Any] = {}
    for key, value in changes.items():
        if key == "status":
            backend[key] = backend_status_for(value).value
        elif key in _NULLABLE_FIELDS:
            backend[key] = None if value == "" else value
        else:
            backend[key] = value
    return backend


class TaskListController:
    """Page-level owner of the task list.

    Mutations are serialized through this object. Each one replaces the
    whole list and invalidates the projector; there is no partial update.
    """

    def __init__(
        self,
        data_service: DataService,
        session: SessionService,
        *,
        clock: Callable[[], datetime] | None = None,
        overdue_resolution: int | None = DEFAULT_OVERDUE_RESOLUTION,
    ) -> None:
        self._service = data_service
        self._session = session
        self._tasks: TaskList = ()
        self.projects: list[Project] = []
        self.loaded = False
        self.projector = TaskProjector(
            self._tasks,
            session.current_user_id,
            clock=clock,
            overdue_resolution=overdue_resolution,
        )
        self._unsubscribe = session.subscribe(self._on_session_change)

    @property
    def tasks(self) -> TaskList:
        return self._tasks

    def close(self) -> None:
        """Stop following session changes."""
        self._unsubscribe()

    def _on_session_change(self, user_id: str | None) -> None:
        self.projects = []
        self.loaded = False
        self.projector.set_current_user(user_id)
        self._set_tasks(())

    def _set_tasks(self, tasks: TaskList) -> None:
        self._tasks = tasks
        self.projector.replace_tasks(tasks)

    def load(self, force: bool = False) -> bool:
        """Fetch tasks and project options for the signed-in user.

        Returns:
            True if data was fetched, False if the loaded list was kept

        Raises:
            SessionError: If nobody is signed in
            AppError: If the data service fails
        """
        user_id = self._session.require_user_id()
        if self.loaded and not force:
            return False

        tasks = tuple(self._service.fetch_tasks(user_id))
        projects = list(self._service.fetch_projects(user_id))

        self._set_tasks(tasks)
        self.projects = projects
        self.loaded = True
        log_event(
            "tasks_loaded",
            user_id=user_id,
            task_count=len(tasks),
            project_count=len(projects),
        )
        return True

    def view(
        self,
        filter_mode: FilterMode | str | None = FilterMode.ALL,
        project_id: str | None = None,
        search: str | None = "",
    ) -> ProjectionResult:
        """Project the current list for the view layer."""
        return self.projector.project(filter_mode, project_id, search)

    def create(self, payload: Mapping[str, Any]) -> MutationResult[TaskList]:
        """Create a task; the stored row is prepended on success."""
        previous = self._tasks
        user_id = self._session.current_user_id
        if user_id is None:
            return Err("No user signed in", previous)

        try:
            backend = to_backend_changes(payload)
            created = self._service.create_task(user_id, backend)
        except (AppError, ValueError) as e:
            return self._rollback("create", previous, e)

        new_state = (created,) + previous
        self._set_tasks(new_state)
        return Ok(new_state)

    def update(self, task_id: str, changes: Mapping[str, Any]) -> MutationResult[TaskList]:
        """Edit task fields optimistically."""
        try:
            backend = to_backend_changes(changes)
        except ValueError as e:
            return Err(str(e), self._tasks)
        return self._apply_update(
            "update",
            task_id,
            backend,
            lambda: self._service.update_task(task_id, backend),
        )

    def change_status(self, task_id: str, display_status: str) -> MutationResult[TaskList]:
        """Move a task to another display status optimistically."""
        status = backend_status_for(display_status).value
        return self._apply_update(
            "change_status",
            task_id,
            {"status": status},
            lambda: self._service.update_status(task_id, status),
        )

    def delete(self, task_id: str) -> MutationResult[TaskList]:
        """Remove a task optimistically."""
        previous = self._tasks
        failure = self._precheck(task_id, previous)
        if failure is not None:
            return failure

        self._set_tasks(tuple(task for task in previous if task.id != task_id))
        try:
            self._service.delete_task(task_id)
        except AppError as e:
            return self._rollback("delete", previous, e)
        return Ok(self._tasks)

    def _precheck(self, task_id: str, previous: TaskList) -> Err[TaskList] | None:
        if self._session.current_user_id is None:
            return Err("No user signed in", previous)
        if not any(task.id == task_id for task in previous):
            return Err(f"Task not found: {task_id}", previous)
        return None

    def _apply_update(
        self,
        operation: str,
        task_id: str,
        backend: dict[str, Any],
        call: Callable[[], TaskRecord],
    ) -> MutationResult[TaskList]:
        previous = self._tasks
        failure = self._precheck(task_id, previous)
        if failure is not None:
            return failure

        self._set_tasks(
            tuple(replace(task, **backend) if task.id == task_id else task for task in previous)
        )
        try:
            stored = call()
        except AppError as e:
            return self._rollback(operation, previous, e)

        new_state = tuple(stored if task.id == task_id else task for task in self._tasks)
        self._set_tasks(new_state)
        return Ok(new_state)

    def _rollback(self, operation: str, previous: TaskList, error: Exception) -> Err[TaskList]:
        self._set_tasks(previous)
        log_event(
            "task_mutation_failed",
            level=logging.WARNING,
            operation=operation,
            error_type=type(error).__name__,
            error=summarize_text(error),
        )
        return Err(str(error), previous)
