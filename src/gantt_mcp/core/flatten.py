"""
Flattened (display-order) projection of the task tree and order normalization.

The flattened list is the single source for visual positions: paste targets,
indent candidates and group insertion points are all resolved against it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from gantt_mcp.core.hierarchy import Task, task_order

logger = logging.getLogger(__name__)


@dataclass
class FlattenedTask:
    """One visible row of the flattened list.

    Attributes:
        task: The task dict itself (not a copy)
        level: Number of existing ancestors (0 = root)
        has_children: True if at least one task names this one as parent
    """

    task: Task
    level: int
    has_children: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task": self.task,
            "level": self.level,
            "has_children": self.has_children,
        }


def is_collapsed(task: Task, collapsed_ids: Optional[Set[str]] = None) -> bool:
    """A task is collapsed when ``open`` is False or the caller lists it."""
    if task.get("open") is False:
        return True
    return bool(collapsed_ids) and task.get("id") in collapsed_ids


def build_flattened_task_list(
    tasks: List[Task],
    collapsed_ids: Optional[Iterable[str]] = None,
    *,
    expand_all: bool = False,
) -> List[FlattenedTask]:
    """Build the display-ordered list, respecting collapse state.

    Children always appear directly below their parent, before the parent's
    later siblings; each sibling group is sorted by ``order``. A task whose
    parent does not resolve is emitted at the root level.

    Args:
        tasks: Task list
        collapsed_ids: Ids collapsed by the caller, in addition to tasks
            whose ``open`` is False
        expand_all: Ignore collapse state entirely and walk every subtree

    Returns:
        Flattened rows in display order
    """
    collapsed = set(collapsed_ids or ())
    task_ids = {task.get("id") for task in tasks}

    # parent id (None for roots and orphans) -> children
    children_map: Dict[Optional[str], List[Task]] = {}
    parents_with_children: Set[str] = set()

    for task in tasks:
        parent = task.get("parent")
        parent_key = parent if parent and parent in task_ids and parent != task.get("id") else None
        children_map.setdefault(parent_key, []).append(task)
        if parent_key is not None:
            parents_with_children.add(parent_key)

    for siblings in children_map.values():
        siblings.sort(key=task_order)

    result: List[FlattenedTask] = []
    emitted: Set[str] = set()

    # Explicit stack instead of recursion; siblings pushed in reverse
    stack = [(task, 0) for task in reversed(children_map.get(None, []))]
    while stack:
        task, level = stack.pop()
        task_id = task.get("id")
        if task_id in emitted:
            continue
        emitted.add(task_id)

        has_children = task_id in parents_with_children
        result.append(FlattenedTask(task=task, level=level, has_children=has_children))

        if has_children and (expand_all or not is_collapsed(task, collapsed)):
            for child in reversed(children_map.get(task_id, [])):
                stack.append((child, level + 1))

    return result


def find_visual_index(flattened: List[FlattenedTask], task_id: Optional[str]) -> int:
    """Return the row index of ``task_id`` in the flattened list, or -1."""
    if task_id is None:
        return -1
    for index, row in enumerate(flattened):
        if row.task.get("id") == task_id:
            return index
    return -1


def normalize_task_order(tasks: List[Task]) -> None:
    """Assign order 0, 1, 2, ... following the fully expanded tree walk.

    Collapse state is ignored, so children of a closed summary are numbered
    too. Uses the existing ``order`` values only to sort within each sibling
    group, and writes globally sequential values back into the same dicts.
    Mutates ``tasks`` in place. Running it twice is a no-op the second time.
    """
    flattened = build_flattened_task_list(tasks, (), expand_all=True)
    for order, row in enumerate(flattened):
        row.task["order"] = order

    if len(flattened) != len(tasks):
        # With every subtree expanded, only tasks in a parent cycle are unreachable
        reached = {id(row.task) for row in flattened}
        trapped = sorted((task for task in tasks if id(task) not in reached), key=task_order)
        logger.warning(
            "Order normalization reached %d of %d tasks; %d sit in a parent cycle",
            len(flattened),
            len(tasks),
            len(trapped),
        )
        for order, task in enumerate(trapped, start=len(flattened)):
            task["order"] = order
