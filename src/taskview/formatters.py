"""Text formatters for CLI output."""

from datetime import datetime, tzinfo

from taskview.models import DisplayStatus, DisplayTask, Priority, ProjectionResult

_STATUS_MARKS = {
    DisplayStatus.TODO: "[ ]",
    DisplayStatus.PROGRESS: "[~]",
    DisplayStatus.COMPLETE: "[x]",
}


def format_counts(result: ProjectionResult) -> str:
    """Render aggregate counts, the status histogram and the priority breakdown."""
    counts = result.counts
    histogram = result.histogram
    priorities = result.priorities
    lines = [
        f"Total: {counts.total}",
        f"Personal: {counts.personal}",
        f"Project: {counts.project}",
        f"Assigned to me: {counts.assigned}",
        f"Completed: {counts.completed}",
        f"Completed on time: {counts.on_time_completed}",
        f"Overdue: {counts.overdue}",
        f"Due today: {counts.due_today}",
        (
            f"To do: {histogram.get(DisplayStatus.TODO, 0)}"
            f" / In progress: {histogram.get(DisplayStatus.PROGRESS, 0)}"
            f" / Complete: {histogram.get(DisplayStatus.COMPLETE, 0)}"
        ),
        (
            f"Low: {priorities.get(Priority.LOW, 0)}"
            f" / Medium: {priorities.get(Priority.MEDIUM, 0)}"
            f" / High: {priorities.get(Priority.HIGH, 0)}"
        ),
    ]
    return "\n".join(lines)


def _due_label(due: datetime, tz: tzinfo | None) -> str:
    if tz is not None:
        try:
            return due.astimezone(tz).date().isoformat()
        except (ValueError, OverflowError):
            # No local equivalent at the edge of the datetime range.
            return due.date().isoformat()
    return due.date().isoformat()


def _format_task(num: str, task: DisplayTask, tz: tzinfo | None) -> str:
    line = f"{num}. {_STATUS_MARKS[task.display_status]} {task.task.title}"
    if task.due_date is not None:
        line += f" (due {_due_label(task.due_date, tz)})"
    return line


def format_upcoming(result: ProjectionResult, tz: tzinfo | None = None) -> str:
    """Render the earliest-due open tasks, or an empty string if none."""
    if not result.upcoming:
        return ""
    lines = ["Upcoming:"]
    lines.extend(
        f"  {_due_label(task.due_date, tz)} {task.task.title}" for task in result.upcoming
    )
    return "\n".join(lines)


def format_task_list(result: ProjectionResult, tz: tzinfo | None = None) -> str:
    """Render the visible tasks of a projection.

    Due dates are shown as calendar dates in ``tz`` (UTC when omitted).
    """
    tasks = result.visible
    if not tasks:
        if result.context.search_query:
            return f"No tasks match '{result.context.search_query}'."
        return "No tasks."

    num_width = len(str(len(tasks)))
    return "\n".join(
        _format_task(str(index).rjust(num_width), task, tz)
        for index, task in enumerate(tasks, start=1)
    )
