"""
Summary-date calculation and upward cascade.

Only tasks of type ``summary`` have derived dates. A regular task with
children keeps the dates it was given, and the cascade stops there.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Set

from gantt_mcp.core.dates import inclusive_day_count, parse_date, to_iso_date
from gantt_mcp.core.hierarchy import Task, build_task_index, task_order

logger = logging.getLogger(__name__)


@dataclass
class SummaryDates:
    """Date range derived for a summary task."""

    start_date: str
    end_date: str
    duration: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


EMPTY_SUMMARY_DATES = SummaryDates(start_date="", end_date="", duration=0)


@dataclass
class SummaryCascadeEntry:
    """Before/after record of one summary recalculation, for undo logging."""

    id: str
    new_values: SummaryDates
    old_values: SummaryDates

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "new_values": self.new_values.to_dict(),
            "old_values": self.old_values.to_dict(),
        }


def _children_map(tasks: List[Task]) -> Dict[str, List[Task]]:
    children: Dict[str, List[Task]] = {}
    for task in tasks:
        parent = task.get("parent")
        if parent:
            children.setdefault(parent, []).append(task)
    for siblings in children.values():
        siblings.sort(key=task_order)
    return children


def _calculate(
    index: Dict[str, Task],
    children_map: Dict[str, List[Task]],
    task_id: str,
    visiting: Set[str],
) -> Optional[SummaryDates]:
    task = index.get(task_id)
    if task is None or task.get("type") != "summary":
        return None

    children = children_map.get(task_id, [])
    if not children:
        return None

    visiting = visiting | {task_id}
    min_start: Optional[date] = None
    max_end: Optional[date] = None

    for child in children:
        if child.get("type") == "summary":
            if child.get("id") in visiting:
                continue
            # Use the child's own calculated range, never its stored dates
            child_dates = _calculate(index, children_map, child["id"], visiting)
            if child_dates is None:
                continue
            child_start = parse_date(child_dates.start_date)
            child_end = parse_date(child_dates.end_date)
        else:
            child_start = parse_date(child.get("start_date"))
            child_end = parse_date(child.get("end_date"))

        if child_start is None or child_end is None:
            continue

        if min_start is None or child_start < min_start:
            min_start = child_start
        if max_end is None or child_end > max_end:
            max_end = child_end

    if min_start is None or max_end is None:
        return None

    return SummaryDates(
        start_date=to_iso_date(min_start),
        end_date=to_iso_date(max_end),
        duration=inclusive_day_count(min_start, max_end),
    )


def calculate_summary_dates(tasks: List[Task], task_id: str) -> Optional[SummaryDates]:
    """Calculate a summary task's date range from its children.

    Summary children contribute their own recursively calculated range;
    other children contribute their stored dates. Children without usable
    dates are skipped.

    Args:
        tasks: Task list
        task_id: Id of the summary task

    Returns:
        The derived range, or None if the task is missing, is not a summary,
        has no children, or no child has usable dates
    """
    return _calculate(build_task_index(tasks), _children_map(tasks), task_id, set())


def _current_values(task: Task) -> SummaryDates:
    return SummaryDates(
        start_date=task.get("start_date", "") or "",
        end_date=task.get("end_date", "") or "",
        duration=task.get("duration", 0) or 0,
    )


def _apply(task: Task, values: SummaryDates) -> None:
    task["start_date"] = values.start_date
    task["end_date"] = values.end_date
    task["duration"] = values.duration


def recalculate_summary_ancestors(
    tasks: List[Task],
    dirty_parent_ids: Iterable[Optional[str]],
) -> List[SummaryCascadeEntry]:
    """Recalculate summary dates for the given parents and cascade upward.

    Each id is processed once. A missing or non-summary task ends its branch
    of the cascade: its own parent is not enqueued. A summary that still has
    children gets its calculated range (when one can be calculated); a
    summary with no children left has its dates cleared to ``""``/``""``/0.
    Either way the summary's parent is enqueued next.

    Mutates ``tasks`` in place.

    Args:
        tasks: Task list (mutated)
        dirty_parent_ids: Parents whose children changed

    Returns:
        One entry per summary whose dates were written, in processing order
    """
    index = build_task_index(tasks)
    entries: List[SummaryCascadeEntry] = []
    processed: Set[str] = set()
    queue = [pid for pid in dirty_parent_ids if pid]

    while queue:
        parent_id = queue.pop(0)
        if parent_id in processed:
            continue
        processed.add(parent_id)

        parent = index.get(parent_id)
        if parent is None or parent.get("type") != "summary":
            continue

        old_values = _current_values(parent)
        has_children = any(t.get("parent") == parent_id for t in tasks)

        if has_children:
            new_values = calculate_summary_dates(tasks, parent_id)
            if new_values is not None:
                _apply(parent, new_values)
                entries.append(
                    SummaryCascadeEntry(id=parent_id, new_values=new_values, old_values=old_values)
                )
        else:
            _apply(parent, EMPTY_SUMMARY_DATES)
            entries.append(
                SummaryCascadeEntry(
                    id=parent_id,
                    new_values=SummaryDates(**asdict(EMPTY_SUMMARY_DATES)),
                    old_values=old_values,
                )
            )

        grandparent = parent.get("parent")
        if grandparent:
            queue.append(grandparent)

    if entries:
        logger.debug("Summary cascade updated %d summaries", len(entries))

    return entries
