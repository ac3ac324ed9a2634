"""
Row paste assembly.

``prepare_row_paste`` is pure: it computes the merged task list and the
records an undo log needs, and never touches its inputs. A rejected paste is
returned as a ``RowPasteError`` value before anything is built.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from gantt_mcp.core.clipboard.position import determine_insert_position
from gantt_mcp.core.clipboard.remap import remap_dependencies, remap_task_ids
from gantt_mcp.core.flatten import build_flattened_task_list, normalize_task_order
from gantt_mcp.core.hierarchy import (
    MAX_HIERARCHY_DEPTH,
    Dependency,
    IdFactory,
    Task,
    build_task_index,
    get_task_descendants,
    get_task_level,
    task_order,
)
from gantt_mcp.core.summary import calculate_summary_dates, recalculate_summary_ancestors

logger = logging.getLogger(__name__)


@dataclass
class RowPasteResult:
    """Everything a caller needs to commit a row paste.

    Attributes:
        merged_tasks: Existing tasks (order-shifted copies) followed by the
            pasted tasks
        new_tasks: The pasted tasks with fresh ids, final order and parent
        remapped_dependencies: Copied dependencies rewritten to the new ids
        id_mapping: Clipboard id -> new id
        insert_order: Order value of the first pasted task
        target_parent: Parent given to the pasted batch roots (None = root)
    """

    merged_tasks: List[Task]
    new_tasks: List[Task]
    remapped_dependencies: List[Dependency]
    id_mapping: Dict[str, str]
    insert_order: float
    target_parent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merged_tasks": self.merged_tasks,
            "new_tasks": self.new_tasks,
            "remapped_dependencies": self.remapped_dependencies,
            "id_mapping": self.id_mapping,
            "insert_order": self.insert_order,
            "target_parent": self.target_parent,
        }


@dataclass
class RowPasteError:
    """A paste that was rejected before any list was built."""

    error: str
    error_code: str = "MAX_DEPTH_EXCEEDED"
    details: Dict[str, Any] = field(default_factory=dict)


def _max_depth_within_batch(tasks: List[Task]) -> int:
    """Deepest parent chain that stays inside the batch."""
    batch = build_task_index(tasks)
    deepest = 0
    for task in tasks:
        depth = 0
        seen = {task["id"]}
        parent_id = task.get("parent")
        while parent_id in batch and parent_id not in seen:
            depth += 1
            seen.add(parent_id)
            parent_id = batch[parent_id].get("parent")
        deepest = max(deepest, depth)
    return deepest


def prepare_row_paste(
    clipboard_tasks: List[Task],
    clipboard_dependencies: List[Dependency],
    current_tasks: List[Task],
    *,
    active_task_id: Optional[str] = None,
    selected_ids: Sequence[str] = (),
    collapsed_ids: Optional[Iterable[str]] = None,
    max_depth: int = MAX_HIERARCHY_DEPTH,
    id_factory: Optional[IdFactory] = None,
) -> Union[RowPasteResult, RowPasteError]:
    """Assemble a row paste against the current schedule.

    The visual insertion point comes from ``determine_insert_position`` over
    the flattened list (collapsed rows stay hidden). Pasting in front of an
    existing row takes that row's order and parent; pasting at the end goes
    to the root level after the highest existing order.

    Pasted batch roots land one level below the target parent. The paste is
    rejected when that level plus the batch's own internal depth reaches
    ``max_depth``.

    On success, existing tasks at or after the insertion order are shifted
    down by the batch size, pasted tasks take consecutive orders from the
    insertion order, and batch roots are attached to the target parent while
    interior rows keep their remapped parent.

    Args:
        clipboard_tasks: Copied tasks
        clipboard_dependencies: Copied dependencies between them
        current_tasks: The schedule being pasted into (not modified)
        active_task_id: Task id of the active cell, if any
        selected_ids: Currently selected task ids
        collapsed_ids: Ids collapsed in addition to ``open: False`` tasks
        max_depth: Maximum number of hierarchy levels
        id_factory: Id generator, defaults to uuid4 strings

    Returns:
        RowPasteResult, or RowPasteError when the depth limit would be hit
    """
    flattened = build_flattened_task_list(current_tasks, collapsed_ids)
    insert_index = determine_insert_position(active_task_id, selected_ids, flattened)

    index = build_task_index(current_tasks)
    target_parent: Optional[str] = None
    target_level = 0

    if insert_index < len(flattened):
        anchor = flattened[insert_index].task
        insert_order = task_order(anchor)
        parent = anchor.get("parent")
        # An orphan's dangling parent is not a real target
        if parent and parent in index:
            target_parent = parent
            target_level = get_task_level(current_tasks, parent) + 1
    else:
        insert_order = max([task_order(t) for t in current_tasks], default=-1) + 1

    remapped, id_mapping = remap_task_ids(clipboard_tasks, id_factory)
    pasted_depth = _max_depth_within_batch(remapped)

    if target_level + pasted_depth >= max_depth:
        logger.info(
            "Rejected paste of %d tasks at level %d with internal depth %d",
            len(remapped),
            target_level,
            pasted_depth,
        )
        return RowPasteError(
            error=f"Cannot paste: would exceed maximum nesting depth of {max_depth} levels",
            details={
                "max_depth": max_depth,
                "target_level": target_level,
                "pasted_depth": pasted_depth,
            },
        )

    remapped_dependencies = remap_dependencies(clipboard_dependencies, id_mapping, id_factory)

    count = len(remapped)
    shifted = []
    for task in current_tasks:
        moved = dict(task)
        if task_order(task) >= insert_order:
            moved["order"] = task_order(task) + count
        shifted.append(moved)

    new_ids = set(id_mapping.values())
    new_tasks = []
    for position, task in enumerate(remapped):
        is_batch_root = not task.get("parent") or task["parent"] not in new_ids
        new_tasks.append({
            **task,
            "order": insert_order + position,
            "parent": target_parent if is_batch_root else task["parent"],
        })

    logger.debug(
        "Prepared paste of %d tasks at order %s under %s",
        count,
        insert_order,
        target_parent or "root",
    )

    return RowPasteResult(
        merged_tasks=shifted + new_tasks,
        new_tasks=new_tasks,
        remapped_dependencies=remapped_dependencies,
        id_mapping=id_mapping,
        insert_order=insert_order,
        target_parent=target_parent,
    )


def apply_summary_recalculation(tasks: List[Task], target_parent: Optional[str]) -> List[Task]:
    """Refresh the target parent's dates after a paste.

    Only a summary target is recalculated. Returns a new list in which the
    target is replaced by an updated copy; any other case returns ``tasks``.
    """
    if not target_parent:
        return tasks

    parent = build_task_index(tasks).get(target_parent)
    if parent is None or parent.get("type") != "summary":
        return tasks

    dates = calculate_summary_dates(tasks, target_parent)
    if dates is None:
        return tasks

    return [
        {**task, **dates.to_dict()} if task.get("id") == target_parent else task
        for task in tasks
    ]


@dataclass
class CutApplyResult:
    """Schedule state after the source rows of a cut were removed.

    Attributes:
        tasks: Remaining tasks, renormalized, with source parents cascaded
        dependencies: Remaining dependencies
        removed_tasks: The source tasks that were deleted
        removed_dependencies: Dependencies dropped because they touched one
    """

    tasks: List[Task]
    dependencies: List[Dependency]
    removed_tasks: List[Task] = field(default_factory=list)
    removed_dependencies: List[Dependency] = field(default_factory=list)

    @property
    def removed_task_ids(self) -> List[str]:
        return [task["id"] for task in self.removed_tasks]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "removed_task_ids": self.removed_task_ids,
            "removed_tasks": self.removed_tasks,
            "removed_dependencies": self.removed_dependencies,
        }


def apply_cut_deletion(
    tasks: List[Task],
    cut_ids: Iterable[str],
    dependencies: List[Dependency],
) -> CutApplyResult:
    """Remove the source rows of a cut once its paste has been assembled.

    ``tasks`` is the merged list from ``prepare_row_paste``. Each cut id takes
    its descendants with it, since they travelled on the clipboard too. Every
    dependency touching a removed task is dropped. Orders are rebuilt over the
    fully expanded tree and the former parents of removed rows are cascaded.

    Works on copies; neither input list is modified.
    """
    remaining = [dict(task) for task in tasks]
    index = build_task_index(remaining)

    removed_ids = set()
    for cut_id in cut_ids:
        if cut_id not in index or cut_id in removed_ids:
            continue
        removed_ids.add(cut_id)
        removed_ids.update(child["id"] for child in get_task_descendants(remaining, cut_id))

    removed_tasks = [task for task in remaining if task.get("id") in removed_ids]
    kept_tasks = [task for task in remaining if task.get("id") not in removed_ids]

    kept_dependencies = []
    removed_dependencies = []
    for dep in dependencies:
        if dep.get("from_task_id") in removed_ids or dep.get("to_task_id") in removed_ids:
            removed_dependencies.append(dep)
        else:
            kept_dependencies.append(dep)

    if removed_tasks:
        old_parents = {
            task.get("parent")
            for task in removed_tasks
            if task.get("parent") and task.get("parent") not in removed_ids
        }
        recalculate_summary_ancestors(kept_tasks, old_parents)
        normalize_task_order(kept_tasks)

    logger.debug(
        "Cut removed %d tasks and %d dependencies",
        len(removed_tasks),
        len(removed_dependencies),
    )
    return CutApplyResult(
        tasks=kept_tasks,
        dependencies=kept_dependencies,
        removed_tasks=removed_tasks,
        removed_dependencies=removed_dependencies,
    )
