"""
Collection stage of the copy pipeline.

Copies respect what the user selected and what the user can see: only
explicitly selected rows are taken, except that a collapsed row carries its
hidden subtree along with it.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Set

from gantt_mcp.core.hierarchy import Dependency, Task, build_task_index, get_task_children


@dataclass
class CopiedRows:
    """Detached snapshot of copied rows and the dependencies between them."""

    tasks: List[Task] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"tasks": self.tasks, "dependencies": self.dependencies}


def collect_tasks_with_children(selected_ids: Sequence[str], tasks: List[Task]) -> List[Task]:
    """Collect the tasks a row copy takes.

    Every selected task is taken. A selected task whose ``open`` is False
    also brings all of its descendants, since they are hidden beneath it.
    No task is taken twice; unknown ids are skipped.

    Args:
        selected_ids: Explicitly selected task ids, in selection order
        tasks: Complete task list

    Returns:
        The collected task dicts (not copies), in collection order
    """
    index = build_task_index(tasks)
    collected: Set[str] = set()
    result: List[Task] = []

    def collect_hidden(parent_id: str) -> None:
        for child in get_task_children(tasks, parent_id):
            if child["id"] in collected:
                continue
            collected.add(child["id"])
            result.append(child)
            # Grandchildren of a collapsed row are hidden too, open or not
            collect_hidden(child["id"])

    for task_id in selected_ids:
        if task_id in collected:
            continue
        task = index.get(task_id)
        if task is None:
            continue
        collected.add(task_id)
        result.append(task)
        if task.get("open") is False:
            collect_hidden(task_id)

    return result


def collect_internal_dependencies(
    tasks: List[Task],
    dependencies: List[Dependency],
) -> List[Dependency]:
    """Keep only dependencies whose two endpoints are both among ``tasks``."""
    task_ids = {task.get("id") for task in tasks}
    return [
        dep for dep in dependencies
        if dep.get("from_task_id") in task_ids and dep.get("to_task_id") in task_ids
    ]


def deep_clone(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return copy.deepcopy(records)


def copy_rows(
    tasks: List[Task],
    dependencies: List[Dependency],
    selected_ids: Sequence[str],
) -> CopiedRows:
    """Snapshot the selected rows and their internal dependencies.

    The result shares no objects with ``tasks`` or ``dependencies``, so later
    edits to the schedule do not leak into the clipboard.
    """
    collected = collect_tasks_with_children(selected_ids, tasks)
    internal = collect_internal_dependencies(collected, dependencies)
    return CopiedRows(tasks=deep_clone(collected), dependencies=deep_clone(internal))
