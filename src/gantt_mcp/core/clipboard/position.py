"""Visual insertion point for pasted rows."""

from typing import List, Optional, Sequence

from gantt_mcp.core.flatten import FlattenedTask, find_visual_index
from gantt_mcp.core.hierarchy import PLACEHOLDER_TASK_ID


def determine_insert_position(
    active_task_id: Optional[str],
    selected_ids: Sequence[str],
    flattened: List[FlattenedTask],
) -> int:
    """Pick the flattened-list index pasted rows are inserted at.

    Priority:
        1. The placeholder row is the active cell: end of the list.
        2. Only the placeholder row is selected: end of the list.
        3. The active cell is on a visible row: before that row.
        4. The last selected visible row: after it.
        5. Otherwise: end of the list.

    Returns:
        Index in ``[0, len(flattened)]``
    """
    end = len(flattened)
    if active_task_id == PLACEHOLDER_TASK_ID:
        return end

    real_selected = [task_id for task_id in selected_ids if task_id != PLACEHOLDER_TASK_ID]
    if PLACEHOLDER_TASK_ID in selected_ids and not real_selected:
        return end

    if active_task_id:
        index = find_visual_index(flattened, active_task_id)
        if index != -1:
            return index

    if real_selected:
        index = find_visual_index(flattened, real_selected[-1])
        if index != -1:
            return index + 1

    return end
