"""Unified schedule tool with action routing.

Every action is stateless: the caller sends the task list (and, where an
action needs them, dependencies and selection state) and receives the
result, including the mutated list for editing actions.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from gantt_mcp.config import ServerConfig
from gantt_mcp.core.clipboard import (
    RowPasteError,
    apply_cut_deletion,
    apply_summary_recalculation,
    copy_rows,
    decode_rows,
    encode_rows,
    prepare_row_paste,
)
from gantt_mcp.core.context import (
    generate_correlation_id,
    get_correlation_id,
    sync_request_context,
)
from gantt_mcp.core.flatten import build_flattened_task_list, normalize_task_order
from gantt_mcp.core.hierarchy import build_task_index
from gantt_mcp.core.insertion import INSERT_DIRECTIONS, insert_tasks_relative
from gantt_mcp.core.naming import canonical_tool
from gantt_mcp.core.responses import (
    ErrorCode,
    ErrorType,
    error_response,
    internal_error,
    max_depth_error,
    not_found_error,
    success_response,
    validation_error,
)
from gantt_mcp.core.selection import get_effective_task_ids, get_effective_tasks_to_move
from gantt_mcp.core.structure import (
    StructureError,
    can_group,
    can_indent,
    can_outdent,
    group_tasks,
    indent_tasks,
    outdent_tasks,
    set_all_tasks_open,
    set_task_open,
    ungroup_tasks,
)
from gantt_mcp.core.summary import calculate_summary_dates, recalculate_summary_ancestors
from gantt_mcp.core.validation import (
    ScheduleInputError,
    require_id,
    validate_dependencies,
    validate_id_list,
    validate_tasks,
)
from gantt_mcp.tools.router import (
    ActionDefinition,
    ActionRouter,
    ActionRouterError,
)

logger = logging.getLogger(__name__)


def _request_id() -> str:
    return get_correlation_id() or generate_correlation_id(prefix="schedule")


def _telemetry(start: float) -> Dict[str, Any]:
    return {"duration_ms": round((time.perf_counter() - start) * 1000, 2)}


def _tasks(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    return validate_tasks(payload.get("tasks"))


def _target_ids(payload: Dict[str, Any]) -> List[str]:
    """Explicit task_ids, else the selection, else the active cell's task."""
    explicit = validate_id_list(payload.get("task_ids"), "task_ids")
    if explicit:
        return explicit
    return get_effective_task_ids(
        validate_id_list(payload.get("selected_ids"), "selected_ids"),
        payload.get("active_task_id"),
    )


def _handle_flatten(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    start = time.perf_counter()
    tasks = _tasks(payload)
    collapsed = validate_id_list(payload.get("collapsed_ids"), "collapsed_ids")
    rows = build_flattened_task_list(tasks, collapsed)
    return asdict(
        success_response(
            rows=[row.to_dict() for row in rows],
            count=len(rows),
            telemetry=_telemetry(start),
            request_id=_request_id(),
        )
    )


def _handle_normalize(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    tasks = _tasks(payload)
    normalize_task_order(tasks)
    return asdict(success_response(tasks=tasks, request_id=_request_id()))


def _handle_summary_dates(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    tasks = _tasks(payload)
    task_id = require_id(payload.get("task_id"), "task_id")
    if task_id not in build_task_index(tasks):
        return asdict(not_found_error("Task", task_id, request_id=_request_id()))
    dates = calculate_summary_dates(tasks, task_id)
    return asdict(
        success_response(
            task_id=task_id,
            summary_dates=dates.to_dict() if dates else None,
            request_id=_request_id(),
        )
    )


def _handle_cascade(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    tasks = _tasks(payload)
    dirty = validate_id_list(payload.get("task_ids"), "task_ids")
    if not dirty:
        raise ScheduleInputError("task_ids", "provide at least one parent id to recalculate")
    cascade = recalculate_summary_ancestors(tasks, dirty)
    return asdict(
        success_response(
            tasks=tasks,
            cascade=[entry.to_dict() for entry in cascade],
            request_id=_request_id(),
        )
    )


def _handle_move_set(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    tasks = _tasks(payload)
    selected = validate_id_list(payload.get("selected_ids"), "selected_ids")
    task_ids = get_effective_tasks_to_move(tasks, selected)
    return asdict(success_response(task_ids=task_ids, count=len(task_ids), request_id=_request_id()))


def _handle_insert(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    request_id = _request_id()
    tasks = _tasks(payload)
    reference_id = require_id(payload.get("task_id"), "task_id")

    direction = payload.get("direction") or "below"
    if direction not in INSERT_DIRECTIONS:
        return asdict(
            validation_error(
                f"direction must be one of: {', '.join(INSERT_DIRECTIONS)}",
                field="direction",
                request_id=request_id,
            )
        )
    count = payload.get("count", 1)
    if not isinstance(count, int) or count < 1:
        return asdict(
            validation_error("count must be a positive integer", field="count", request_id=request_id)
        )

    settings = config.hierarchy
    result = insert_tasks_relative(
        tasks,
        reference_id,
        direction,
        count,
        default_duration=settings.default_task_duration,
        default_name=settings.default_task_name,
        default_color=settings.default_task_color,
    )
    if result is None:
        return asdict(not_found_error("Task", reference_id, request_id=request_id))

    return asdict(success_response(tasks=tasks, insertion=result.to_dict(), request_id=request_id))


def _handle_copy(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    tasks = _tasks(payload)
    dependencies = validate_dependencies(payload.get("dependencies"))
    selected = _target_ids(payload)
    if not selected:
        raise ScheduleInputError("selected_ids", "select at least one task to copy")

    copied = copy_rows(tasks, dependencies, selected)
    return asdict(
        success_response(
            copied.to_dict(),
            clipboard_text=encode_rows(copied.tasks, copied.dependencies),
            request_id=_request_id(),
        )
    )


PASTE_OPERATIONS = ("copy", "cut")


def _handle_paste(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    request_id = _request_id()
    tasks = _tasks(payload)
    dependencies = validate_dependencies(payload.get("dependencies"))

    operation = payload.get("operation") or "copy"
    if operation not in PASTE_OPERATIONS:
        return asdict(
            validation_error(
                f"operation must be one of: {', '.join(PASTE_OPERATIONS)}",
                field="operation",
                request_id=request_id,
            )
        )
    cut_ids = validate_id_list(payload.get("cut_task_ids"), "cut_task_ids")
    if operation == "cut" and not cut_ids:
        raise ScheduleInputError("cut_task_ids", "a cut paste needs the ids of the cut rows")

    clipboard_text = payload.get("clipboard_text")
    if clipboard_text:
        rows = decode_rows(clipboard_text)
        if rows is None:
            return asdict(
                error_response(
                    "Clipboard text does not contain copied rows",
                    error_code=ErrorCode.INVALID_FORMAT,
                    error_type=ErrorType.VALIDATION,
                    remediation="Copy rows with the copy action and pass its clipboard_text",
                    request_id=request_id,
                )
            )
        raw_tasks, raw_dependencies = rows.tasks, rows.dependencies
    else:
        raw_tasks = payload.get("clipboard_tasks")
        raw_dependencies = payload.get("clipboard_dependencies")
    clipboard_tasks = validate_tasks(raw_tasks, "clipboard_tasks")
    clipboard_dependencies = validate_dependencies(raw_dependencies, "clipboard_dependencies")
    if not clipboard_tasks:
        raise ScheduleInputError("clipboard_tasks", "nothing to paste")

    max_depth = config.hierarchy.max_depth
    result = prepare_row_paste(
        clipboard_tasks,
        clipboard_dependencies,
        tasks,
        active_task_id=payload.get("active_task_id"),
        selected_ids=validate_id_list(payload.get("selected_ids"), "selected_ids"),
        collapsed_ids=validate_id_list(payload.get("collapsed_ids"), "collapsed_ids"),
        max_depth=max_depth,
    )
    if isinstance(result, RowPasteError):
        return asdict(
            max_depth_error(
                result.error,
                max_depth=max_depth,
                details=result.details,
                request_id=request_id,
            )
        )

    merged = apply_summary_recalculation(result.merged_tasks, result.target_parent)
    merged_dependencies = dependencies + result.remapped_dependencies
    cut = None
    if operation == "cut":
        cut = apply_cut_deletion(merged, cut_ids, merged_dependencies)
        merged, merged_dependencies = cut.tasks, cut.dependencies

    return asdict(
        success_response(
            tasks=merged,
            dependencies=merged_dependencies,
            new_task_ids=[task["id"] for task in result.new_tasks],
            id_mapping=result.id_mapping,
            insert_order=result.insert_order,
            target_parent=result.target_parent,
            operation=operation,
            cut=cut.to_dict() if cut else None,
            request_id=request_id,
        )
    )


def _handle_indent(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    tasks = _tasks(payload)
    task_ids = _target_ids(payload)
    max_depth = config.hierarchy.max_depth
    if payload.get("dry_run"):
        allowed = can_indent(tasks, task_ids, max_depth=max_depth)
        return asdict(success_response(allowed=allowed, dry_run=True, request_id=_request_id()))

    changes = indent_tasks(tasks, task_ids, max_depth=max_depth)
    return asdict(
        success_response(
            tasks=tasks,
            changes=[change.to_dict() for change in changes],
            request_id=_request_id(),
        )
    )


def _handle_outdent(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    tasks = _tasks(payload)
    task_ids = _target_ids(payload)
    if payload.get("dry_run"):
        allowed = can_outdent(tasks, task_ids)
        return asdict(success_response(allowed=allowed, dry_run=True, request_id=_request_id()))

    changes = outdent_tasks(tasks, task_ids)
    return asdict(
        success_response(
            tasks=tasks,
            changes=[change.to_dict() for change in changes],
            request_id=_request_id(),
        )
    )


def _handle_group(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    request_id = _request_id()
    tasks = _tasks(payload)
    selected = validate_id_list(payload.get("selected_ids"), "selected_ids")
    settings = config.hierarchy
    if payload.get("dry_run"):
        allowed = can_group(tasks, selected, max_depth=settings.max_depth)
        return asdict(success_response(allowed=allowed, dry_run=True, request_id=request_id))

    result = group_tasks(
        tasks,
        selected,
        max_depth=settings.max_depth,
        group_name=settings.default_group_name,
        color=settings.default_task_color,
    )
    if isinstance(result, StructureError):
        if result.error_code == ErrorCode.MAX_DEPTH_EXCEEDED.value:
            return asdict(max_depth_error(result.error, max_depth=settings.max_depth, request_id=request_id))
        return asdict(
            error_response(
                result.error,
                error_code=ErrorCode.INVALID_SELECTION,
                error_type=ErrorType.VALIDATION,
                remediation="Select one or more tasks that share the same parent",
                request_id=request_id,
            )
        )
    return asdict(success_response(tasks=tasks, group=result.to_dict(), request_id=request_id))


def _handle_ungroup(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    tasks = _tasks(payload)
    dependencies = validate_dependencies(payload.get("dependencies"))
    result = ungroup_tasks(
        tasks,
        validate_id_list(payload.get("selected_ids"), "selected_ids"),
        dependencies,
    )
    warnings = None if result else ["No selected summary task has children; nothing to ungroup"]
    return asdict(
        success_response(
            tasks=tasks,
            dependencies=dependencies,
            ungroup=result.to_dict() if result else None,
            warnings=warnings,
            request_id=_request_id(),
        )
    )


def _set_open(payload: Dict[str, Any], open_: bool) -> dict:
    tasks = _tasks(payload)
    if payload.get("all_tasks"):
        changed = set_all_tasks_open(tasks, open_)
    else:
        task_id = require_id(payload.get("task_id"), "task_id")
        if task_id not in build_task_index(tasks):
            return asdict(not_found_error("Task", task_id, request_id=_request_id()))
        changed = set_task_open(tasks, task_id, open_)
    return asdict(success_response(tasks=tasks, changed=changed, request_id=_request_id()))


def _handle_expand(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    return _set_open(payload, True)


def _handle_collapse(*, config: ServerConfig, payload: Dict[str, Any]) -> dict:
    return _set_open(payload, False)


_ACTION_DEFINITIONS = [
    ActionDefinition(
        name="flatten",
        handler=_handle_flatten,
        summary="Display-ordered rows with level and has_children",
    ),
    ActionDefinition(
        name="normalize",
        handler=_handle_normalize,
        summary="Reassign dense, tree-consistent order values",
    ),
    ActionDefinition(
        name="summary-dates",
        handler=_handle_summary_dates,
        summary="Derived date range of one summary task",
        aliases=("summary_dates",),
    ),
    ActionDefinition(
        name="cascade",
        handler=_handle_cascade,
        summary="Recalculate summary dates upward from changed parents",
    ),
    ActionDefinition(
        name="move-set",
        handler=_handle_move_set,
        summary="Resolve a selection into the tasks a move must shift",
        aliases=("move_set",),
    ),
    ActionDefinition(
        name="insert",
        handler=_handle_insert,
        summary="Insert new sibling tasks above or below a task",
    ),
    ActionDefinition(
        name="copy",
        handler=_handle_copy,
        summary="Copy selected rows and their internal dependencies",
    ),
    ActionDefinition(
        name="paste",
        handler=_handle_paste,
        summary="Paste copied rows at the active or selected position",
    ),
    ActionDefinition(
        name="indent",
        handler=_handle_indent,
        summary="Make tasks children of their previous sibling",
    ),
    ActionDefinition(
        name="outdent",
        handler=_handle_outdent,
        summary="Move tasks up one hierarchy level",
    ),
    ActionDefinition(
        name="group",
        handler=_handle_group,
        summary="Wrap selected tasks in a new summary task",
    ),
    ActionDefinition(
        name="ungroup",
        handler=_handle_ungroup,
        summary="Dissolve selected summary tasks",
    ),
    ActionDefinition(
        name="expand",
        handler=_handle_expand,
        summary="Expand one summary task, or all with all_tasks",
    ),
    ActionDefinition(
        name="collapse",
        handler=_handle_collapse,
        summary="Collapse one summary task, or all with all_tasks",
    ),
]

_SCHEDULE_ROUTER = ActionRouter(tool_name="schedule", actions=_ACTION_DEFINITIONS)


def _dispatch_schedule_action(
    *, action: str, payload: Dict[str, Any], config: ServerConfig
) -> dict:
    with sync_request_context(
        correlation_id=generate_correlation_id(prefix="schedule"),
        client_id="mcp",
    ):
        return _route_schedule_action(action=action, payload=payload, config=config)


def _route_schedule_action(
    *, action: str, payload: Dict[str, Any], config: ServerConfig
) -> dict:
    try:
        logger.debug("Dispatching schedule action %s", action)
        return _SCHEDULE_ROUTER.dispatch(action=action, config=config, payload=payload)
    except ActionRouterError as exc:
        allowed = ", ".join(exc.allowed_actions)
        return asdict(
            error_response(
                f"Unsupported schedule action '{action}'. Allowed actions: {allowed}",
                error_code=ErrorCode.VALIDATION_ERROR,
                error_type=ErrorType.VALIDATION,
                remediation=f"Use one of: {allowed}",
                details={"action": action, "allowed_actions": exc.allowed_actions},
                request_id=_request_id(),
            )
        )
    except ScheduleInputError as exc:
        return asdict(
            validation_error(
                str(exc),
                field=exc.field,
                details={"action": f"schedule.{action}"},
                request_id=_request_id(),
            )
        )
    except Exception as exc:
        logger.exception("Error during schedule action %s", action)
        return asdict(internal_error(f"schedule.{action} failed: {exc}", request_id=_request_id()))


def register_schedule_tool(mcp: FastMCP, config: ServerConfig) -> None:
    """Register the consolidated schedule tool."""

    @canonical_tool(
        mcp,
        canonical_name="schedule",
    )
    def schedule(
        action: str,
        tasks: Optional[List[Dict[str, Any]]] = None,
        dependencies: Optional[List[Dict[str, Any]]] = None,
        task_id: Optional[str] = None,
        task_ids: Optional[List[str]] = None,
        selected_ids: Optional[List[str]] = None,
        active_task_id: Optional[str] = None,
        collapsed_ids: Optional[List[str]] = None,
        direction: str = "below",
        count: int = 1,
        clipboard_tasks: Optional[List[Dict[str, Any]]] = None,
        clipboard_dependencies: Optional[List[Dict[str, Any]]] = None,
        clipboard_text: Optional[str] = None,
        operation: str = "copy",
        cut_task_ids: Optional[List[str]] = None,
        all_tasks: bool = False,
        dry_run: bool = False,
    ) -> dict:
        """Edit and query a task schedule via `action` parameter.

        Args:
            action: One of "flatten", "normalize", "summary-dates", "cascade",
                "move-set", "insert", "copy", "paste", "indent", "outdent",
                "group", "ungroup", "expand", "collapse".
            tasks: The full task list the action operates on.
            dependencies: Dependencies between tasks (copy, paste, ungroup).
            task_id: Reference task (summary-dates, insert, expand, collapse).
            task_ids: Explicit targets (cascade, indent, outdent).
            selected_ids: Current selection.
            active_task_id: Task of the active cell.
            collapsed_ids: Extra collapsed tasks (flatten, paste).
            direction: "above" or "below" for insert.
            count: Number of tasks to insert.
            clipboard_tasks: Copied tasks to paste.
            clipboard_dependencies: Copied dependencies to paste.
            clipboard_text: Encoded clipboard rows, instead of clipboard_tasks.
            operation: "copy" or "cut"; a cut paste removes the source rows.
            cut_task_ids: Source rows of a cut (paste with operation="cut").
            all_tasks: Expand or collapse every summary task.
            dry_run: Only report whether indent, outdent or group is allowed.
        """
        payload = {
            "tasks": tasks,
            "dependencies": dependencies,
            "task_id": task_id,
            "task_ids": task_ids,
            "selected_ids": selected_ids,
            "active_task_id": active_task_id,
            "collapsed_ids": collapsed_ids,
            "direction": direction,
            "count": count,
            "clipboard_tasks": clipboard_tasks,
            "clipboard_dependencies": clipboard_dependencies,
            "clipboard_text": clipboard_text,
            "operation": operation,
            "cut_task_ids": cut_task_ids,
            "all_tasks": all_tasks,
            "dry_run": dry_run,
        }
        return _dispatch_schedule_action(action=action, payload=payload, config=config)

    logger.debug("Registered unified schedule tool")


__all__ = [
    "register_schedule_tool",
]
