"""Task categorization and per-view result caching for task list views.

A projector derives display tasks, ownership buckets, status and priority
histograms, aggregate counts and the upcoming-deadline list from a task list
in a single pass, then serves each distinct (filter mode, project, search)
view from a cache until the list or the current user changes.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from taskview.dates import normalize_timestamp, utc_now
from taskview.errors import ConfigError
from taskview.logging import log_event
from taskview.models import (
    DisplayStatus,
    DisplayTask,
    FilterMode,
    Priority,
    ProjectionResult,
    TaskBuckets,
    TaskCounts,
    TaskRecord,
    ViewContext,
    display_status_for,
    parse_filter_mode,
    priority_for,
)

DEFAULT_OVERDUE_RESOLUTION = 60
UPCOMING_LIMIT = 6

_CacheKey = tuple[FilterMode, str | None, str, int | None]


def to_display_task(task: TaskRecord) -> DisplayTask:
    """Derive the display form of a task record."""
    return DisplayTask(
        task=task,
        display_status=display_status_for(task.status),
        due_date=normalize_timestamp(task.due_date),
    )


def is_overdue(task: DisplayTask, now: datetime) -> bool:
    """Due date present, not complete, and strictly before now."""
    if task.due_date is None or task.display_status == DisplayStatus.COMPLETE:
        return False
    return task.due_date < now


def is_completed_on_time(task: DisplayTask) -> bool:
    """Complete, with a due date, and last updated no later than it."""
    if task.display_status != DisplayStatus.COMPLETE or task.due_date is None:
        return False
    updated_at = normalize_timestamp(task.task.updated_at)
    return updated_at is not None and updated_at <= task.due_date


def _utc_date(now: datetime) -> date:
    return now.astimezone(timezone.utc).date()


def normalize_search_query(query: str | None) -> str:
    """Strip and lowercase search text; None means no search."""
    if not query:
        return ""
    return query.strip().lower()


def matches_search(task: DisplayTask, query: str) -> bool:
    """Case-insensitive substring match over title or description."""
    if not query:
        return True
    return query in task.task.title.lower() or query in task.task.description.lower()


@dataclass
class _TaskIndex:
    """Everything the single full scan produces."""

    buckets: TaskBuckets
    histogram: Mapping[DisplayStatus, int]
    priorities: Mapping[Priority, int]
    counts: TaskCounts
    counts_bucket: int | None
    upcoming: tuple[DisplayTask, ...]
    # Due dates of open tasks, ascending, for recounting time-dependent counts.
    open_due_dates: tuple[datetime, ...]


class TaskProjector:
    """Memoized categorization of one task list for one user."""

    def __init__(
        self,
        tasks: Iterable[TaskRecord],
        current_user_id: str | None,
        *,
        clock: Callable[[], datetime] | None = None,
        overdue_resolution: int | None = DEFAULT_OVERDUE_RESOLUTION,
    ) -> None:
        if overdue_resolution is not None and (
            isinstance(overdue_resolution, bool)
            or not isinstance(overdue_resolution, int)
            or overdue_resolution <= 0
        ):
            raise ConfigError("overdue_resolution must be a positive integer or None")

        self._tasks: tuple[TaskRecord, ...] = tuple(tasks)
        self._current_user_id = current_user_id
        self._clock = clock or utc_now
        self._overdue_resolution = overdue_resolution
        self._index: _TaskIndex | None = None
        self._results: dict[_CacheKey, ProjectionResult] = {}
        self._results_bucket: int | None = None
        self.scan_count = 0

    @property
    def tasks(self) -> tuple[TaskRecord, ...]:
        return self._tasks

    @property
    def current_user_id(self) -> str | None:
        return self._current_user_id

    def replace_tasks(self, tasks: Iterable[TaskRecord]) -> None:
        """Swap in a new task list and drop every cached result."""
        self._tasks = tuple(tasks)
        self.invalidate(reason="tasks_replaced")

    def set_current_user(self, user_id: str | None) -> None:
        """Rebind the current user; drops caches only if the id changed."""
        if user_id == self._current_user_id:
            return
        self._current_user_id = user_id
        self.invalidate(reason="user_changed")

    def invalidate(self, reason: str = "manual") -> None:
        """Drop the scan index and all cached results."""
        self._index = None
        self._results.clear()
        self._results_bucket = None
        log_event(
            "projection_invalidated",
            level=logging.DEBUG,
            reason=reason,
            task_count=len(self._tasks),
        )

    def project(
        self,
        filter_mode: FilterMode | str | None = FilterMode.ALL,
        selected_project_id: str | None = None,
        search_query: str | None = "",
    ) -> ProjectionResult:
        """Return the categorized view for the given filters.

        Args:
            filter_mode: all, personal, project or assigned; anything else
                falls back to all
            selected_project_id: narrows project mode to one project; ignored
                in other modes
            search_query: case-insensitive substring over title/description

        Returns:
            ProjectionResult; the same object for repeated identical calls
            while the list and user are unchanged
        """
        mode = parse_filter_mode(filter_mode)
        if mode is None:
            log_event(
                "filter_mode_fallback",
                level=logging.DEBUG,
                requested=filter_mode,
                used=FilterMode.ALL,
            )
            mode = FilterMode.ALL

        project_id = (selected_project_id or None) if mode == FilterMode.PROJECT else None
        query = normalize_search_query(search_query)

        now = self._clock()
        time_bucket = self._time_bucket(now)
        if time_bucket != self._results_bucket:
            # Overdue and due-today may have moved; older buckets are never read again.
            self._results.clear()
            self._results_bucket = time_bucket

        key: _CacheKey = (mode, project_id, query, time_bucket)
        cached = self._results.get(key)
        if cached is not None:
            log_event(
                "projection_cache_hit",
                level=logging.DEBUG,
                filter_mode=mode,
                project_id=project_id,
                search=query,
            )
            return cached

        index = self._ensure_index(now, time_bucket)
        visible = self._select(index.buckets, mode, project_id, query)

        result = ProjectionResult(
            context=ViewContext(
                current_user_id=self._current_user_id,
                filter_mode=mode,
                selected_project_id=project_id,
                search_query=query,
            ),
            visible=visible,
            buckets=index.buckets,
            histogram=index.histogram,
            counts=index.counts,
            priorities=index.priorities,
            upcoming=index.upcoming,
        )
        self._results[key] = result
        return result

    def _time_bucket(self, now: datetime) -> int | None:
        if self._overdue_resolution is None:
            return None
        return int(now.timestamp() // self._overdue_resolution)

    def _ensure_index(self, now: datetime, time_bucket: int | None) -> _TaskIndex:
        if self._index is None:
            self._index = self._scan(now, time_bucket)
        elif self._index.counts_bucket != time_bucket:
            today = _utc_date(now)
            open_due_dates = self._index.open_due_dates
            self._index.counts = replace(
                self._index.counts,
                overdue=sum(1 for due in open_due_dates if due < now),
                due_today=sum(1 for due in open_due_dates if due.date() == today),
            )
            self._index.counts_bucket = time_bucket
        return self._index

    def _scan(self, now: datetime, time_bucket: int | None) -> _TaskIndex:
        all_tasks: list[DisplayTask] = []
        personal: list[DisplayTask] = []
        project: list[DisplayTask] = []
        assigned: list[DisplayTask] = []
        histogram = {status: 0 for status in DisplayStatus}
        priorities = {priority: 0 for priority in Priority}
        open_with_due: list[DisplayTask] = []
        completed = 0
        overdue = 0
        due_today = 0
        on_time_completed = 0
        today = _utc_date(now)
        user_id = self._current_user_id

        for record in self._tasks:
            task = to_display_task(record)
            all_tasks.append(task)

            if record.is_personal:
                personal.append(task)
            else:
                project.append(task)

            if user_id is not None and record.assigned_to == user_id:
                assigned.append(task)

            histogram[task.display_status] += 1
            priorities[priority_for(record.priority)] += 1

            if task.display_status == DisplayStatus.COMPLETE:
                completed += 1
                if is_completed_on_time(task):
                    on_time_completed += 1
            elif task.due_date is not None:
                open_with_due.append(task)
                if is_overdue(task, now):
                    overdue += 1
                if task.due_date.date() == today:
                    due_today += 1

        # Stable sort keeps source order among equal due dates.
        open_with_due.sort(key=lambda t: t.due_date)

        self.scan_count += 1
        log_event(
            "projection_scan",
            level=logging.DEBUG,
            task_count=len(all_tasks),
            user_id=user_id,
            scan_count=self.scan_count,
        )

        return _TaskIndex(
            buckets=TaskBuckets(
                all=tuple(all_tasks),
                personal=tuple(personal),
                project=tuple(project),
                assigned=tuple(assigned),
            ),
            histogram=MappingProxyType(histogram),
            priorities=MappingProxyType(priorities),
            counts=TaskCounts(
                total=len(all_tasks),
                personal=len(personal),
                project=len(project),
                assigned=len(assigned),
                completed=completed,
                overdue=overdue,
                due_today=due_today,
                on_time_completed=on_time_completed,
            ),
            counts_bucket=time_bucket,
            upcoming=tuple(open_with_due[:UPCOMING_LIMIT]),
            open_due_dates=tuple(t.due_date for t in open_with_due),
        )

    @staticmethod
    def _select(
        buckets: TaskBuckets,
        mode: FilterMode,
        project_id: str | None,
        query: str,
    ) -> tuple[DisplayTask, ...]:
        if mode == FilterMode.PERSONAL:
            selected = buckets.personal
        elif mode == FilterMode.PROJECT:
            selected = buckets.project
            if project_id is not None:
                selected = tuple(t for t in selected if t.task.project_id == project_id)
        elif mode == FilterMode.ASSIGNED:
            selected = buckets.assigned
        else:
            selected = buckets.all

        if not query:
            return selected
        return tuple(t for t in selected if matches_search(t, query))
