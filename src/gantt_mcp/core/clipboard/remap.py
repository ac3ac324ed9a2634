"""
Identity remapping for pasted rows.

Pasted rows always get fresh ids. Links that stay inside the pasted batch
are rewritten through the id mapping; links that leave it are cut.
"""

from typing import Dict, List, Optional, Tuple

from gantt_mcp.core.hierarchy import Dependency, IdFactory, Task, generate_task_id


def remap_task_ids(
    tasks: List[Task],
    id_factory: Optional[IdFactory] = None,
) -> Tuple[List[Task], Dict[str, str]]:
    """Give every task a new id and rewrite internal parent links.

    A parent that is also in ``tasks`` is replaced by its new id; any other
    parent is cleared, detaching the task from its source hierarchy.

    Args:
        tasks: Copied tasks (not modified)
        id_factory: Id generator, defaults to uuid4 strings

    Returns:
        Tuple of (remapped task copies, old id -> new id)
    """
    new_id = id_factory or generate_task_id
    id_mapping: Dict[str, str] = {}
    for task in tasks:
        id_mapping[task["id"]] = new_id()

    remapped = []
    for task in tasks:
        parent = task.get("parent")
        remapped.append({
            **task,
            "id": id_mapping[task["id"]],
            "parent": id_mapping.get(parent) if parent else None,
        })
    return remapped, id_mapping


def remap_dependencies(
    dependencies: List[Dependency],
    id_mapping: Dict[str, str],
    id_factory: Optional[IdFactory] = None,
) -> List[Dependency]:
    """Rewrite dependency endpoints through ``id_mapping``.

    Dependencies with an endpoint outside the mapping are dropped. Each kept
    dependency gets a new id of its own.
    """
    new_id = id_factory or generate_task_id
    return [
        {
            **dep,
            "id": new_id(),
            "from_task_id": id_mapping[dep.get("from_task_id")],
            "to_task_id": id_mapping[dep.get("to_task_id")],
        }
        for dep in dependencies
        if dep.get("from_task_id") in id_mapping and dep.get("to_task_id") in id_mapping
    ]
