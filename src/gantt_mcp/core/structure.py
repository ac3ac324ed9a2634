"""
Hierarchy restructuring: indent, outdent, group, ungroup, expand/collapse.

Every operation here mutates the caller's task list in place and leaves it
normalized with summary dates cascaded. Candidate changes are computed
against the hierarchy as it was before the call, then applied together.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Union

from gantt_mcp.core.dates import inclusive_day_count, parse_date, to_iso_date
from gantt_mcp.core.flatten import FlattenedTask, build_flattened_task_list, normalize_task_order
from gantt_mcp.core.hierarchy import (
    DEFAULT_GROUP_NAME,
    DEFAULT_TASK_COLOR,
    MAX_HIERARCHY_DEPTH,
    Dependency,
    IdFactory,
    Task,
    build_task_index,
    can_have_children,
    generate_task_id,
    get_max_descendant_level,
    get_task_children,
    get_task_descendants,
    get_task_level,
    task_order,
    would_create_circular_hierarchy,
)
from gantt_mcp.core.selection import get_root_selected_ids
from gantt_mcp.core.summary import SummaryCascadeEntry, recalculate_summary_ancestors

logger = logging.getLogger(__name__)


@dataclass
class HierarchyChange:
    task_id: str
    old_parent: Optional[str]
    new_parent: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "old_parent": self.old_parent,
            "new_parent": self.new_parent,
        }


@dataclass
class StructureError:
    """A structural edit that was rejected before anything changed."""

    error: str
    error_code: str = "VALIDATION_ERROR"


@dataclass
class GroupResult:
    summary_task: Task
    changes: List[HierarchyChange]
    description: str
    cascade: List[SummaryCascadeEntry] = field(default_factory=list)

    @property
    def summary_id(self) -> str:
        return self.summary_task["id"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary_task_id": self.summary_id,
            "summary_task": self.summary_task,
            "changes": [change.to_dict() for change in self.changes],
            "description": self.description,
            "cascade": [entry.to_dict() for entry in self.cascade],
        }


@dataclass
class UngroupResult:
    removed_summary_ids: List[str]
    child_ids: List[str]
    changes: List[HierarchyChange]
    removed_dependencies: List[Dependency]
    description: str
    cascade: List[SummaryCascadeEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "removed_summary_ids": self.removed_summary_ids,
            "child_ids": self.child_ids,
            "changes": [change.to_dict() for change in self.changes],
            "removed_dependencies": self.removed_dependencies,
            "description": self.description,
            "cascade": [entry.to_dict() for entry in self.cascade],
        }


def _visual_index(flat: List[FlattenedTask]) -> Dict[str, int]:
    return {row.task["id"]: i for i, row in enumerate(flat)}


def _previous_sibling(
    flat: List[FlattenedTask],
    index: int,
    skip_ids: Set[str],
) -> Optional[Task]:
    """Nearest earlier row on the same level, ignoring rows in ``skip_ids``."""
    level = flat[index].level
    for i in range(index - 1, -1, -1):
        row = flat[i]
        if row.level == level and row.task["id"] not in skip_ids:
            return row.task
        if row.level < level:
            break
    return None


def _compute_indent_changes(
    tasks: List[Task],
    task_ids: Sequence[str],
    max_depth: int,
) -> List[HierarchyChange]:
    flat = build_flattened_task_list(tasks, (), expand_all=True)
    positions = _visual_index(flat)
    selected = set(task_ids)
    changes: List[HierarchyChange] = []

    ordered = sorted((tid for tid in selected if tid in positions), key=positions.__getitem__)
    for task_id in ordered:
        index = positions[task_id]
        new_parent = _previous_sibling(flat, index, selected)
        if new_parent is None:
            continue

        level = flat[index].level
        if not can_have_children(new_parent):
            continue
        if get_max_descendant_level(tasks, task_id) + 1 >= max_depth:
            continue
        if would_create_circular_hierarchy(tasks, task_id, new_parent["id"]):
            continue
        if get_task_level(tasks, new_parent["id"]) != level:
            continue

        changes.append(HierarchyChange(task_id, flat[index].task.get("parent"), new_parent["id"]))

    return changes


def indent_tasks(
    tasks: List[Task],
    task_ids: Sequence[str],
    *,
    max_depth: int = MAX_HIERARCHY_DEPTH,
) -> List[HierarchyChange]:
    """Make each task a child of its previous sibling.

    Tasks are processed top to bottom in display order. A task is skipped
    when it has no previous sibling outside the selection, when that sibling
    is a milestone, or when its subtree would sink to ``max_depth``. A
    collapsed new parent is opened.

    Args:
        tasks: Task list (mutated)
        task_ids: Tasks to indent
        max_depth: Maximum number of hierarchy levels

    Returns:
        The applied changes; empty when nothing could be indented
    """
    changes = _compute_indent_changes(tasks, task_ids, max_depth)
    if not changes:
        return changes

    index = build_task_index(tasks)
    for change in changes:
        index[change.task_id]["parent"] = change.new_parent
        parent = index[change.new_parent]
        if parent.get("open") is False:
            parent["open"] = True

    recalculate_summary_ancestors(tasks, {c.new_parent for c in changes})
    normalize_task_order(tasks)
    logger.debug("Indented %d tasks", len(changes))
    return changes


def can_indent(
    tasks: List[Task],
    task_ids: Sequence[str],
    *,
    max_depth: int = MAX_HIERARCHY_DEPTH,
) -> bool:
    """True if at least one of the tasks can be indented."""
    flat = build_flattened_task_list(tasks, (), expand_all=True)
    positions = _visual_index(flat)
    for task_id in task_ids:
        if task_id not in positions:
            continue
        sibling = _previous_sibling(flat, positions[task_id], set())
        if sibling is None or not can_have_children(sibling):
            continue
        if get_max_descendant_level(tasks, task_id) + 1 < max_depth:
            return True
    return False


def outdent_tasks(tasks: List[Task], task_ids: Sequence[str]) -> List[HierarchyChange]:
    """Move each task up one level, to its grandparent.

    Root tasks and tasks whose parent cannot be resolved are skipped.
    Levels are taken from the hierarchy before any change is applied.

    Returns:
        The applied changes; empty when nothing could be outdented
    """
    index = build_task_index(tasks)
    levels = {task["id"]: get_task_level(tasks, task["id"]) for task in tasks if "id" in task}
    changes: List[HierarchyChange] = []

    for task_id in task_ids:
        task = index.get(task_id)
        if task is None or not task.get("parent"):
            continue
        parent = index.get(task["parent"])
        if parent is None:
            continue

        grandparent = parent.get("parent") or None
        new_level = levels.get(grandparent, 0) + 1 if grandparent else 0
        if new_level == levels[task_id] - 1:
            changes.append(HierarchyChange(task_id, task["parent"], grandparent))

    if not changes:
        return changes

    for change in changes:
        index[change.task_id]["parent"] = change.new_parent

    recalculate_summary_ancestors(tasks, {c.old_parent for c in changes})
    normalize_task_order(tasks)
    logger.debug("Outdented %d tasks", len(changes))
    return changes


def can_outdent(tasks: List[Task], task_ids: Sequence[str]) -> bool:
    index = build_task_index(tasks)
    return any(index.get(task_id, {}).get("parent") for task_id in task_ids)


def _validate_group(
    tasks: List[Task],
    selected_ids: Sequence[str],
    max_depth: int,
) -> Union[List[str], StructureError]:
    if not selected_ids:
        return StructureError("No tasks selected")

    index = build_task_index(tasks)
    root_ids = [tid for tid in get_root_selected_ids(tasks, selected_ids) if tid in index]
    if not root_ids:
        return StructureError("No root tasks in selection")

    parents = {index[tid].get("parent") or None for tid in root_ids}
    if len(parents) != 1:
        return StructureError("Cannot group: selected tasks must share the same parent")

    for task_id in root_ids:
        if get_max_descendant_level(tasks, task_id) + 1 >= max_depth:
            return StructureError(
                "Cannot group: maximum nesting depth would be exceeded",
                error_code="MAX_DEPTH_EXCEEDED",
            )

    return root_ids


def can_group(
    tasks: List[Task],
    selected_ids: Sequence[str],
    *,
    max_depth: int = MAX_HIERARCHY_DEPTH,
) -> bool:
    return not isinstance(_validate_group(tasks, selected_ids, max_depth), StructureError)


def _group_dates(tasks: List[Task], root_ids: List[str]) -> Dict[str, Any]:
    index = build_task_index(tasks)
    starts = []
    ends = []
    for root_id in root_ids:
        for task in [index[root_id]] + get_task_descendants(tasks, root_id):
            start = parse_date(task.get("start_date"))
            end = parse_date(task.get("end_date"))
            if start and end:
                starts.append(start)
                ends.append(end)

    if not starts:
        return {"start_date": "", "end_date": "", "duration": 0}
    return {
        "start_date": to_iso_date(min(starts)),
        "end_date": to_iso_date(max(ends)),
        "duration": inclusive_day_count(min(starts), max(ends)),
    }


def group_tasks(
    tasks: List[Task],
    selected_ids: Sequence[str],
    *,
    max_depth: int = MAX_HIERARCHY_DEPTH,
    group_name: str = DEFAULT_GROUP_NAME,
    color: str = DEFAULT_TASK_COLOR,
    id_factory: Optional[IdFactory] = None,
) -> Union[GroupResult, StructureError]:
    """Wrap the selected tasks in a new summary task.

    Only the topmost selected tasks are moved; their selected descendants
    travel with them. They must share one parent and must stay within
    ``max_depth`` after sinking one level. The new summary is open, sits
    where the topmost selected row was, and takes the common parent.

    Args:
        tasks: Task list (mutated on success)
        selected_ids: Selected task ids
        max_depth: Maximum number of hierarchy levels
        group_name: Name of the new summary
        color: Color of the new summary
        id_factory: Id generator, defaults to uuid4 strings

    Returns:
        GroupResult, or StructureError with nothing changed
    """
    validation = _validate_group(tasks, selected_ids, max_depth)
    if isinstance(validation, StructureError):
        logger.info("Group rejected: %s", validation.error)
        return validation

    root_ids = validation
    index = build_task_index(tasks)
    common_parent = index[root_ids[0]].get("parent") or None

    flat = build_flattened_task_list(tasks, (), expand_all=True)
    root_set = set(root_ids)
    top_row = next((row for row in flat if row.task["id"] in root_set), None)
    insert_order = task_order(top_row.task) if top_row else len(tasks)

    summary = {
        "id": (id_factory or generate_task_id)(),
        "name": group_name,
        **_group_dates(tasks, root_ids),
        "progress": 0,
        "color": color,
        "order": insert_order,
        "type": "summary",
        "parent": common_parent,
        "open": True,
        "metadata": {},
    }

    changes = [
        HierarchyChange(task_id, index[task_id].get("parent"), summary["id"])
        for task_id in root_ids
    ]

    tasks.append(summary)
    for task_id in root_ids:
        index[task_id]["parent"] = summary["id"]
    normalize_task_order(tasks)

    cascade = recalculate_summary_ancestors(tasks, [summary["id"], common_parent])

    description = "Grouped 1 task" if len(root_ids) == 1 else f"Grouped {len(root_ids)} tasks"
    logger.debug("%s under %s", description, summary["id"])
    return GroupResult(summary_task=summary, changes=changes, description=description, cascade=cascade)


def ungroup_tasks(
    tasks: List[Task],
    selected_ids: Sequence[str],
    dependencies: Optional[List[Dependency]] = None,
) -> Optional[UngroupResult]:
    """Dissolve the selected summaries that have children.

    Deepest summaries go first. Each summary's children move to the
    summary's own parent, then the summaries are removed along with every
    dependency that touches them. Both lists are mutated in place.

    Returns:
        UngroupResult, or None when no selected task is a summary with children
    """
    index = build_task_index(tasks)
    parent_ids = {task.get("parent") for task in tasks if task.get("parent")}

    summaries = []
    seen: Set[str] = set()
    for task_id in selected_ids:
        task = index.get(task_id)
        if task is None or task_id in seen:
            continue
        if task.get("type") == "summary" and task_id in parent_ids:
            seen.add(task_id)
            summaries.append(task)
    if not summaries:
        return None

    summaries.sort(key=lambda s: get_task_level(tasks, s["id"]), reverse=True)
    summary_ids = {s["id"] for s in summaries}

    changes: List[HierarchyChange] = []
    child_ids: List[str] = []
    for summary in summaries:
        new_parent = summary.get("parent") or None
        for child in get_task_children(tasks, summary["id"]):
            changes.append(HierarchyChange(child["id"], summary["id"], new_parent))
            child_ids.append(child["id"])
            child["parent"] = new_parent

    affected_parents = {s.get("parent") for s in summaries if s.get("parent")}

    tasks[:] = [task for task in tasks if task.get("id") not in summary_ids]
    normalize_task_order(tasks)
    cascade = recalculate_summary_ancestors(tasks, affected_parents)

    removed_dependencies: List[Dependency] = []
    if dependencies is not None:
        kept = []
        for dep in dependencies:
            if dep.get("from_task_id") in summary_ids or dep.get("to_task_id") in summary_ids:
                removed_dependencies.append(dep)
            else:
                kept.append(dep)
        dependencies[:] = kept

    count = len(summaries)
    description = "Ungrouped 1 task" if count == 1 else f"Ungrouped {count} tasks"
    logger.debug("%s, removed %d dependencies", description, len(removed_dependencies))

    return UngroupResult(
        removed_summary_ids=[s["id"] for s in summaries],
        child_ids=child_ids,
        changes=changes,
        removed_dependencies=removed_dependencies,
        description=description,
        cascade=cascade,
    )


def _is_open(task: Task) -> bool:
    return task.get("open") is not False


def _is_expandable(tasks: List[Task], task: Task) -> bool:
    return task.get("type") == "summary" and any(t.get("parent") == task.get("id") for t in tasks)


def set_task_open(tasks: List[Task], task_id: str, open_: bool) -> bool:
    """Expand or collapse one summary. Returns True if its state changed."""
    task = build_task_index(tasks).get(task_id)
    if task is None or not _is_expandable(tasks, task):
        return False
    if _is_open(task) == open_:
        return False
    task["open"] = open_
    return True


def toggle_task_collapsed(tasks: List[Task], task_id: str) -> bool:
    task = build_task_index(tasks).get(task_id)
    if task is None or not _is_expandable(tasks, task):
        return False
    task["open"] = not _is_open(task)
    return True


def set_all_tasks_open(tasks: List[Task], open_: bool) -> bool:
    """Expand or collapse every summary. Returns True if any state changed."""
    changed = False
    for task in tasks:
        if _is_expandable(tasks, task) and _is_open(task) != open_:
            task["open"] = open_
            changed = True
    return changed
