"""
Relative insertion: create new sibling tasks directly above or below a
reference task.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from gantt_mcp.core.dates import add_days, parse_date, to_iso_date
from gantt_mcp.core.flatten import normalize_task_order
from gantt_mcp.core.hierarchy import (
    DEFAULT_TASK_COLOR,
    DEFAULT_TASK_DURATION,
    DEFAULT_TASK_NAME,
    IdFactory,
    Task,
    generate_task_id,
)
from gantt_mcp.core.summary import SummaryCascadeEntry, recalculate_summary_ancestors

logger = logging.getLogger(__name__)

INSERT_DIRECTIONS = ("above", "below")


@dataclass
class InsertionResult:
    """Audit record of one insertion.

    Attributes:
        tasks: The inserted tasks, in final top-to-bottom order
        generated_ids: Ids of the inserted tasks, parallel to ``tasks``
        description: Human-readable summary for the undo history
        cascade: Summary recalculations triggered by the insertion
    """

    tasks: List[Task]
    generated_ids: List[str]
    description: str
    cascade: List[SummaryCascadeEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"task": self.tasks[0]}
        if len(self.tasks) == 1:
            payload["generated_id"] = self.generated_ids[0]
        else:
            payload["tasks"] = self.tasks
            payload["generated_ids"] = self.generated_ids
        payload["description"] = self.description
        payload["cascade"] = [entry.to_dict() for entry in self.cascade]
        return payload


def _default_dates(
    reference: Task,
    direction: str,
    step: int,
    duration: int,
    today: date,
) -> Tuple[str, str]:
    # Each generated task occupies ``duration`` days plus a one-day gap
    offset = step * (duration + 1)
    if direction == "above":
        anchor = parse_date(reference.get("start_date"))
        end = add_days(anchor, -1 - offset) if anchor else add_days(today, -offset)
        start = add_days(end, -duration + 1)
    else:
        anchor = parse_date(reference.get("end_date"))
        start = add_days(anchor, 1 + offset) if anchor else add_days(today, offset)
        end = add_days(start, duration - 1)
    return to_iso_date(start), to_iso_date(end)


def insert_tasks_relative(
    tasks: List[Task],
    reference_id: str,
    direction: str,
    count: int = 1,
    *,
    default_duration: int = DEFAULT_TASK_DURATION,
    default_name: str = DEFAULT_TASK_NAME,
    default_color: str = DEFAULT_TASK_COLOR,
    today: Optional[date] = None,
    id_factory: Optional[IdFactory] = None,
) -> Optional[InsertionResult]:
    """Insert ``count`` new sibling tasks above or below a reference task.

    Default dates step away from the reference: backward from its start date
    when inserting above, forward from its end date when inserting below,
    ``default_duration + 1`` days per generated task. Without a usable
    reference date the steps start from ``today``. New tasks share the
    reference's parent.

    The batch is spliced into ``tasks`` at the reference's position (above)
    or right after it (below), every task's order is reset to its list
    position and then normalized, and the reference's parent is cascaded.
    Multi-task "above" batches are reversed so they read earliest first.

    Mutates ``tasks`` in place.

    Args:
        tasks: Task list (mutated)
        reference_id: Id of the task to insert next to
        direction: "above" or "below"
        count: Number of tasks to create
        default_duration: Duration in days of each new task
        default_name: Name given to each new task
        default_color: Color given to each new task
        today: Anchor date when the reference has no dates
        id_factory: Id generator, defaults to uuid4 strings

    Returns:
        The insertion record, or None (nothing changed) when the reference
        is missing or ``count`` is below 1

    Raises:
        ValueError: If ``direction`` is not "above" or "below"
    """
    if direction not in INSERT_DIRECTIONS:
        raise ValueError(f"direction must be one of {', '.join(INSERT_DIRECTIONS)}, got {direction!r}")

    ref_index = next((i for i, t in enumerate(tasks) if t.get("id") == reference_id), -1)
    if ref_index == -1 or count < 1:
        return None

    reference = tasks[ref_index]
    splice_index = ref_index if direction == "above" else ref_index + 1
    new_id = id_factory or generate_task_id
    anchor_today = today or date.today()

    new_tasks: List[Task] = []
    generated_ids: List[str] = []
    for step in range(count):
        start_date, end_date = _default_dates(
            reference, direction, step, default_duration, anchor_today
        )
        new_tasks.append({
            "name": default_name,
            "start_date": start_date,
            "end_date": end_date,
            "duration": default_duration,
            "progress": 0,
            "color": default_color,
            "order": splice_index + step,
            "type": "task",
            "parent": reference.get("parent"),
            "metadata": {},
        })
        generated_ids.append(new_id())

    if direction == "above" and count > 1:
        new_tasks.reverse()
        generated_ids.reverse()

    for task, task_id in zip(new_tasks, generated_ids):
        task["id"] = task_id

    tasks[splice_index:splice_index] = new_tasks
    for position, task in enumerate(tasks):
        task["order"] = position
    normalize_task_order(tasks)

    cascade: List[SummaryCascadeEntry] = []
    if reference.get("parent"):
        cascade = recalculate_summary_ancestors(tasks, [reference["parent"]])

    description = (
        f"Inserted task {direction}" if count == 1 else f"Inserted {count} tasks {direction}"
    )
    logger.debug("%s next to %s: %s", description, reference_id, generated_ids)

    return InsertionResult(
        tasks=new_tasks,
        generated_ids=generated_ids,
        description=description,
        cascade=cascade,
    )
