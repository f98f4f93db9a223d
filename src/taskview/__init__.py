"""taskview - task categorization and caching for task list views."""

from taskview.projector import TaskProjector

__all__ = ["TaskProjector"]
