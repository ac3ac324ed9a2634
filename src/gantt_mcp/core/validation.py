"""
Input validation for schedule payloads arriving at the MCP tool and the CLI.

The core trusts its inputs; everything that crosses a process boundary is
checked here first and rejected with a field-level message.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from gantt_mcp.core.hierarchy import TASK_TYPES, Dependency, Task

MAX_INPUT_SIZE = 5_000_000
"""Maximum schedule document size in bytes (5MB)."""

MAX_TASK_COUNT = 20_000


class ScheduleInputError(ValueError):
    """Raised when a schedule payload is malformed.

    Attributes:
        field: Name of the offending input field
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Invalid field '{field}': {message}")
        self.field = field
        self.reason = message


@dataclass
class ScheduleDocument:
    """A task list and its dependencies, as exchanged on the CLI."""

    tasks: List[Task] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"tasks": self.tasks, "dependencies": self.dependencies}


def validate_tasks(value: Any, field_name: str = "tasks") -> List[Task]:
    """Check a task list: a list of objects, each with a unique string ``id``."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ScheduleInputError(field_name, f"expected a list, got {type(value).__name__}")
    if len(value) > MAX_TASK_COUNT:
        raise ScheduleInputError(field_name, f"too many tasks ({len(value)} > {MAX_TASK_COUNT})")

    seen = set()
    for position, task in enumerate(value):
        if not isinstance(task, dict):
            raise ScheduleInputError(f"{field_name}[{position}]", "expected an object")
        task_id = task.get("id")
        if not isinstance(task_id, str) or not task_id:
            raise ScheduleInputError(f"{field_name}[{position}].id", "expected a non-empty string")
        if task_id in seen:
            raise ScheduleInputError(f"{field_name}[{position}].id", f"duplicate id '{task_id}'")
        seen.add(task_id)
        task_type = task.get("type", "task")
        if task_type not in TASK_TYPES:
            raise ScheduleInputError(
                f"{field_name}[{position}].type",
                f"expected one of {', '.join(TASK_TYPES)}, got '{task_type}'",
            )
    return value


def validate_dependencies(value: Any, field_name: str = "dependencies") -> List[Dependency]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ScheduleInputError(field_name, f"expected a list, got {type(value).__name__}")
    for position, dep in enumerate(value):
        if not isinstance(dep, dict):
            raise ScheduleInputError(f"{field_name}[{position}]", "expected an object")
        for key in ("from_task_id", "to_task_id"):
            if not isinstance(dep.get(key), str):
                raise ScheduleInputError(f"{field_name}[{position}].{key}", "expected a string")
    return value


def validate_id_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ScheduleInputError(field_name, "expected a list of task ids")
    return value


def require_id(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ScheduleInputError(field_name, "expected a non-empty task id")
    return value


def parse_schedule_document(
    raw_input: str,
    *,
    max_size: Optional[int] = None,
) -> Tuple[Optional[ScheduleDocument], Optional[str]]:
    """
    Parse and validate a JSON schedule document.

    Performs the size check before JSON parsing.

    Args:
        raw_input: JSON text ``{"tasks": [...], "dependencies": [...]}``
        max_size: Maximum allowed size in bytes (default: MAX_INPUT_SIZE)

    Returns:
        Tuple of (document, error_message):
        - On success: (ScheduleDocument, None)
        - On failure: (None, message)
    """
    effective_max_size = max_size if max_size is not None else MAX_INPUT_SIZE
    size = len(raw_input.encode("utf-8"))
    if size > effective_max_size:
        return None, (
            f"Input size ({size:,} bytes) exceeds maximum allowed ({effective_max_size:,} bytes)"
        )

    try:
        data = json.loads(raw_input)
    except json.JSONDecodeError as e:
        return None, f"Failed to parse JSON: {e}"

    if isinstance(data, list):
        # A bare task list is accepted as shorthand
        data = {"tasks": data}
    if not isinstance(data, dict):
        return None, f"Schedule must be a JSON object, got {type(data).__name__}"

    try:
        tasks = validate_tasks(data.get("tasks"))
        dependencies = validate_dependencies(data.get("dependencies"))
    except ScheduleInputError as e:
        return None, str(e)

    return ScheduleDocument(tasks=tasks, dependencies=dependencies), None
