"""
Text envelope exchanged with a system clipboard adapter.

Rows travel as ``GANTT_ROWS:`` followed by JSON ``{"tasks", "dependencies"}``;
a single cell travels as ``GANTT_CELL:`` followed by JSON ``{"value", "field"}``.
Anything else on the clipboard is foreign text and decodes to None.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from gantt_mcp.core.clipboard.collect import CopiedRows
from gantt_mcp.core.hierarchy import Dependency, Task

logger = logging.getLogger(__name__)

ROW_PREFIX = "GANTT_ROWS:"
CELL_PREFIX = "GANTT_CELL:"

EDITABLE_FIELDS = frozenset({
    "name",
    "start_date",
    "end_date",
    "duration",
    "progress",
    "color",
    "type",
})


def _is_valid_task_shape(obj: Any) -> bool:
    return isinstance(obj, dict) and isinstance(obj.get("id"), str) and isinstance(obj.get("name"), str)


def encode_rows(tasks: List[Task], dependencies: List[Dependency]) -> str:
    return ROW_PREFIX + json.dumps({"tasks": tasks, "dependencies": dependencies}, separators=(",", ":"))


def encode_cell(value: Any, field: str) -> str:
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown cell field: {field}")
    return CELL_PREFIX + json.dumps({"value": value, "field": field}, separators=(",", ":"))


def _load(text: str, prefix: str) -> Optional[Dict[str, Any]]:
    if not isinstance(text, str) or not text.startswith(prefix):
        return None
    try:
        data = json.loads(text[len(prefix):])
    except json.JSONDecodeError as exc:
        logger.debug("Ignoring malformed clipboard payload: %s", exc)
        return None
    return data if isinstance(data, dict) else None


def decode_rows(text: str) -> Optional[CopiedRows]:
    """Decode a row payload.

    Returns:
        The rows, or None for foreign text, malformed JSON, non-list members
        or a task without a string ``id`` and ``name``
    """
    data = _load(text, ROW_PREFIX)
    if data is None:
        return None

    tasks = data.get("tasks")
    dependencies = data.get("dependencies")
    if not isinstance(tasks, list) or not isinstance(dependencies, list):
        return None
    if not all(_is_valid_task_shape(task) for task in tasks):
        return None

    return CopiedRows(tasks=tasks, dependencies=dependencies)


def decode_cell(text: str) -> Optional[Dict[str, Any]]:
    """Decode a cell payload into ``{"value", "field"}``, or None."""
    data = _load(text, CELL_PREFIX)
    if data is None:
        return None
    if data.get("field") not in EDITABLE_FIELDS or "value" not in data:
        return None
    return {"value": data["value"], "field": data["field"]}


def detect_payload_kind(text: Optional[str]) -> Optional[str]:
    """Return "row", "cell" or None, judging by the prefix only."""
    if not text:
        return None
    if text.startswith(ROW_PREFIX):
        return "row"
    if text.startswith(CELL_PREFIX):
        return "cell"
    return None
