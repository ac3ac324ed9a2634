"""
Selection resolution: turn what the user selected into what an edit mutates.
"""

from typing import List, Optional, Sequence

from gantt_mcp.core.hierarchy import (
    Task,
    build_task_index,
    get_task_descendants,
    iter_ancestors,
)


def get_effective_tasks_to_move(tasks: List[Task], selected_ids: Sequence[str]) -> List[str]:
    """Resolve a selection into the non-summary tasks a move must shift.

    Summary dates are always derived, so summaries never receive a direct
    date change:

    - A selected summary expands to every non-summary descendant, at any depth.
    - A selected non-summary task is skipped when one of its ancestors is a
      selected summary; it is already covered by that summary's expansion.

    Unknown ids are ignored.

    Args:
        tasks: Task list
        selected_ids: Selected task ids, in selection order

    Returns:
        Deduplicated task ids, in first-reached order
    """
    if not selected_ids:
        return []

    index = build_task_index(tasks)
    selected_summary_ids = {
        task_id for task_id in selected_ids
        if index.get(task_id, {}).get("type") == "summary"
    }

    result: List[str] = []
    seen = set()

    def add(task_id: str) -> None:
        if task_id not in seen:
            seen.add(task_id)
            result.append(task_id)

    for task_id in selected_ids:
        task = index.get(task_id)
        if task is None:
            continue

        if task.get("type") == "summary":
            for descendant in get_task_descendants(tasks, task_id):
                if descendant.get("type") != "summary":
                    add(descendant["id"])
            continue

        covered = any(
            ancestor["id"] in selected_summary_ids
            for ancestor in iter_ancestors(index, task)
        )
        if not covered:
            add(task_id)

    return result


def get_root_selected_ids(tasks: List[Task], selected_ids: Sequence[str]) -> List[str]:
    """Keep only the topmost selected tasks.

    If a task and one of its ancestors are both selected, only the ancestor
    is kept. Selection order is preserved.
    """
    selected = set(selected_ids)
    index = build_task_index(tasks)
    roots = []
    for task_id in selected_ids:
        task = index.get(task_id)
        if task is not None and any(a["id"] in selected for a in iter_ancestors(index, task)):
            continue
        roots.append(task_id)
    return roots


def get_effective_task_ids(
    selected_ids: Sequence[str],
    active_task_id: Optional[str] = None,
) -> List[str]:
    """The selection, or the active cell's task when nothing is selected."""
    if selected_ids:
        return list(selected_ids)
    if active_task_id:
        return [active_task_id]
    return []
