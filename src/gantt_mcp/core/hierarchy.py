"""
Task tree model and pure hierarchy queries.

A schedule is a flat list of task dicts. Hierarchy is encoded by each task's
``parent`` key, a weak reference to another task's ``id``. Nothing keeps
child lists in sync: every hierarchy view (children, descendants, ancestor
path, level) is derived by traversal over the list the caller passes in.

Task keys:
    id, name, start_date, end_date, duration, progress, color, order,
    parent, type ("task" | "summary" | "milestone"), open, metadata

A ``parent`` that is missing, None, empty or does not resolve to a task in
the list marks a root-level task. Dangling parents (orphans) are never an
error and never counted as an ancestor.
"""

import uuid
from typing import Any, Callable, Dict, Iterator, List, Optional

# Task and dependency records are plain dicts
Task = Dict[str, Any]
Dependency = Dict[str, Any]

# Zero-argument callable returning a fresh, globally unique id
IdFactory = Callable[[], str]

# Maximum hierarchy depth (number of levels: 0, 1, 2)
MAX_HIERARCHY_DEPTH = 3

TASK_TYPES = ("task", "summary", "milestone")

# Reserved id of the trailing "add new task" row
PLACEHOLDER_TASK_ID = "__new_task_placeholder__"

DEFAULT_TASK_DURATION = 7
DEFAULT_TASK_NAME = "New Task"
DEFAULT_GROUP_NAME = "New Group"
DEFAULT_TASK_COLOR = "#0F6CBD"


def generate_task_id() -> str:
    return str(uuid.uuid4())


def task_order(task: Task) -> float:
    """Sort key for sibling and global ordering."""
    order = task.get("order")
    if isinstance(order, (int, float)) and not isinstance(order, bool):
        return order
    return 0


def is_summary(task: Optional[Task]) -> bool:
    return bool(task) and task.get("type") == "summary"


def can_have_children(task: Optional[Task]) -> bool:
    """Milestones are points in time and cannot contain other tasks."""
    return bool(task) and task.get("type") != "milestone"


def build_task_index(tasks: List[Task]) -> Dict[str, Task]:
    """Map task id -> task. Later duplicates win."""
    return {task["id"]: task for task in tasks if task.get("id") is not None}


def iter_ancestors(index: Dict[str, Task], task: Task) -> Iterator[Task]:
    """Yield the existing ancestors of ``task``, nearest first.

    Stops at the first parent id that does not resolve, and on a cycle.
    """
    seen = {task.get("id")}
    parent_id = task.get("parent")
    while parent_id and parent_id not in seen:
        parent = index.get(parent_id)
        if parent is None:
            return
        yield parent
        seen.add(parent_id)
        parent_id = parent.get("parent")


def get_task_children(tasks: List[Task], parent_id: Optional[str]) -> List[Task]:
    """Get the direct children of a task, sorted by order.

    Args:
        tasks: Task list
        parent_id: Parent task id, or None for tasks without a parent

    Returns:
        Child tasks in ascending ``order``
    """
    if parent_id is None:
        children = [task for task in tasks if not task.get("parent")]
    else:
        children = [task for task in tasks if task.get("parent") == parent_id]
    return sorted(children, key=task_order)


def get_task_descendants(tasks: List[Task], parent_id: str) -> List[Task]:
    """Get all descendants of a task at any depth.

    Direct children come first, followed by each child's own descendants.
    """
    children_map: Dict[str, List[Task]] = {}
    for task in tasks:
        parent = task.get("parent")
        if parent:
            children_map.setdefault(parent, []).append(task)
    for siblings in children_map.values():
        siblings.sort(key=task_order)

    visited = {parent_id}

    def collect(node_id: str) -> List[Task]:
        children = [c for c in children_map.get(node_id, []) if c.get("id") not in visited]
        visited.update(c.get("id") for c in children)
        result = list(children)
        for child in children:
            result.extend(collect(child["id"]))
        return result

    return collect(parent_id)


def get_task_path(tasks: List[Task], task_id: str) -> List[str]:
    """Get the ids of a task's existing ancestors, root first."""
    index = build_task_index(tasks)
    task = index.get(task_id)
    if task is None:
        return []
    path = [ancestor["id"] for ancestor in iter_ancestors(index, task)]
    path.reverse()
    return path


def get_task_level(tasks: List[Task], task_id: str) -> int:
    """Get the nesting level of a task (0 = root)."""
    return len(get_task_path(tasks, task_id))


def get_max_depth(tasks: List[Task]) -> int:
    """Get the deepest nesting level present in the list."""
    index = build_task_index(tasks)
    max_depth = 0
    for task in tasks:
        depth = sum(1 for _ in iter_ancestors(index, task))
        if depth > max_depth:
            max_depth = depth
    return max_depth


def get_max_descendant_level(tasks: List[Task], task_id: str) -> int:
    """Get the deepest absolute level within the subtree rooted at ``task_id``.

    The task itself is part of its subtree, so a leaf returns its own level.
    """
    index = build_task_index(tasks)
    deepest = get_task_level(tasks, task_id)
    for descendant in get_task_descendants(tasks, task_id):
        level = sum(1 for _ in iter_ancestors(index, descendant))
        if level > deepest:
            deepest = level
    return deepest


def would_create_circular_hierarchy(
    tasks: List[Task],
    task_id: str,
    new_parent_id: Optional[str],
) -> bool:
    """Check whether re-parenting ``task_id`` under ``new_parent_id`` forms a cycle."""
    if not new_parent_id:
        return False
    if task_id == new_parent_id:
        return True
    return any(d.get("id") == new_parent_id for d in get_task_descendants(tasks, task_id))
