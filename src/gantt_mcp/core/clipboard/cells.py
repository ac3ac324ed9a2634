"""Cell-level paste rules."""

from dataclasses import dataclass
from typing import Any, Optional

from gantt_mcp.core.hierarchy import DEFAULT_TASK_COLOR, Task

DATE_FIELDS = ("start_date", "end_date")


@dataclass
class CellPasteCheck:
    valid: bool
    error: Optional[str] = None


def can_paste_cell_value(source_field: str, target_field: str, target_task: Task) -> CellPasteCheck:
    """Check whether a copied cell value may be pasted into a target cell.

    Rules:
        - Source and target must be the same field.
        - Summary dates are derived from children and cannot be pasted into.
        - Milestones have no duration or progress to paste into.
    """
    if source_field != target_field:
        return CellPasteCheck(False, f"Cannot paste {source_field} into {target_field}")

    task_type = target_task.get("type")
    if task_type == "summary" and target_field in DATE_FIELDS:
        return CellPasteCheck(
            False,
            "Cannot paste dates into summary tasks (dates are calculated from children)",
        )

    if task_type == "milestone" and target_field in ("duration", "progress"):
        return CellPasteCheck(False, f"Cannot paste {target_field} into milestone tasks")

    return CellPasteCheck(True)


def get_clear_value_for_field(field: str, *, default_color: str = DEFAULT_TASK_COLOR) -> Any:
    """Value a cell takes when its content is cut."""
    if field in ("duration", "progress"):
        return 0
    if field == "color":
        return default_color
    if field == "type":
        return "task"
    return ""
