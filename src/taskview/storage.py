"""Data file persistence and persisted-structure validation."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from taskview.errors import StorageError, ValidationError
from taskview.models import Project, TaskRecord

_LIST_KEYS = ("tasks", "projects", "members")


@dataclass
class DataFile:
    """Contents of a taskview data file."""

    tasks: list[TaskRecord] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    members: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DataFile":
        """Create data file model from a validated payload."""
        return cls(
            tasks=[TaskRecord.from_dict(row) for row in payload["tasks"]],
            projects=[Project.from_dict(row) for row in payload.get("projects", [])],
            members=[dict(row) for row in payload.get("members", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to persistence payload."""
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "projects": [project.to_dict() for project in self.projects],
            "members": [dict(member) for member in self.members],
        }


def validate_data_structure(data: Any) -> None:
    """Validate persisted data file structure."""
    if not isinstance(data, dict):
        raise ValidationError("Invalid data file structure: expected an object")

    if "tasks" not in data:
        raise ValidationError("Invalid data file structure: missing 'tasks' key")

    for key in _LIST_KEYS:
        if key not in data:
            continue
        if not isinstance(data[key], list):
            raise ValidationError(f"Invalid data file structure: '{key}' must be an array")
        for i, row in enumerate(data[key]):
            if not isinstance(row, dict):
                raise ValidationError(f"{key[:-1].capitalize()} {i} is not a valid object")


def load_data(path: str) -> DataFile:
    """Load the data file; a missing file is an empty one."""
    data_path = Path(path)

    if not data_path.exists():
        return DataFile()

    try:
        with open(data_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        validate_data_structure(data)
        return DataFile.from_dict(data)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in data file: {e}") from e
    except UnicodeDecodeError as e:
        raise StorageError(f"Data file is not valid UTF-8: {data_path}: {e}") from e
    except ValidationError as e:
        raise StorageError(str(e)) from e
    except OSError as e:
        raise StorageError(f"Failed to read data file: {data_path}: {e}") from e


def save_data(path: str, data_file: DataFile) -> None:
    """Save data file payload to JSON."""
    data_path = Path(path)
    try:
        data_path.parent.mkdir(parents=True, exist_ok=True)

        with open(data_path, "w", encoding="utf-8") as f:
            json.dump(data_file.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise StorageError(f"Failed to save data file: {data_path}: {e}") from e
