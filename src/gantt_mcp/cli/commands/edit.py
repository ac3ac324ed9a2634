"""Structural editing commands for the gantt CLI.

Each command reads a schedule, applies one edit and writes the updated
task list (and dependencies, where the edit touches them).
"""

from typing import IO, Optional, Tuple

import click

from gantt_mcp.cli.logging import cli_command, get_cli_logger
from gantt_mcp.cli.output import emit_error, emit_success
from gantt_mcp.cli.registry import get_context
from gantt_mcp.cli.schedule_input import read_schedule, schedule_input_option
from gantt_mcp.core.hierarchy import build_task_index
from gantt_mcp.core.insertion import INSERT_DIRECTIONS, insert_tasks_relative
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
    toggle_task_collapsed,
    ungroup_tasks,
)

logger = get_cli_logger()


def _require_task(tasks, task_id: str) -> None:
    if task_id not in build_task_index(tasks):
        emit_error(
            f"Task not found: {task_id}",
            code="TASK_NOT_FOUND",
            error_type="not_found",
            remediation="Verify the task ID with: gantt tree flatten",
            details={"task_id": task_id},
        )


@click.group("edit")
def edit_group() -> None:
    """Task tree editing commands."""
    pass


@edit_group.command("insert")
@click.argument("task_id")
@click.option(
    "--direction",
    type=click.Choice(INSERT_DIRECTIONS),
    default="below",
    show_default=True,
    help="Insert above or below the reference task",
)
@click.option("--count", type=click.IntRange(min=1), default=1, show_default=True)
@schedule_input_option
@click.pass_context
@cli_command("edit-insert")
def insert_cmd(
    ctx: click.Context,
    task_id: str,
    direction: str,
    count: int,
    source: IO[str],
) -> None:
    """Insert new sibling tasks next to TASK_ID."""
    settings = get_context(ctx).hierarchy
    document = read_schedule(source)
    _require_task(document.tasks, task_id)

    result = insert_tasks_relative(
        document.tasks,
        task_id,
        direction,
        count,
        default_duration=settings.default_task_duration,
        default_name=settings.default_task_name,
        default_color=settings.default_task_color,
    )
    emit_success(
        {
            **document.to_dict(),
            "insertion": result.to_dict() if result else None,
        }
    )


@edit_group.command("indent")
@click.argument("task_ids", nargs=-1, required=True)
@click.option("--dry-run", is_flag=True, help="Only report whether the edit is allowed")
@schedule_input_option
@click.pass_context
@cli_command("edit-indent")
def indent_cmd(
    ctx: click.Context,
    task_ids: Tuple[str, ...],
    dry_run: bool,
    source: IO[str],
) -> None:
    """Make tasks children of their previous sibling."""
    cli_ctx = get_context(ctx)
    document = read_schedule(source)
    if dry_run:
        allowed = can_indent(document.tasks, list(task_ids), max_depth=cli_ctx.max_depth)
        emit_success({"allowed": allowed, "dry_run": True})
        return
    changes = indent_tasks(document.tasks, list(task_ids), max_depth=cli_ctx.max_depth)
    warnings = None if changes else ["No task could be indented"]
    emit_success(
        {
            **document.to_dict(),
            "changes": [change.to_dict() for change in changes],
        },
        warnings=warnings,
    )


@edit_group.command("outdent")
@click.argument("task_ids", nargs=-1, required=True)
@click.option("--dry-run", is_flag=True, help="Only report whether the edit is allowed")
@schedule_input_option
@click.pass_context
@cli_command("edit-outdent")
def outdent_cmd(
    ctx: click.Context,
    task_ids: Tuple[str, ...],
    dry_run: bool,
    source: IO[str],
) -> None:
    """Move tasks up one hierarchy level."""
    document = read_schedule(source)
    if dry_run:
        emit_success({"allowed": can_outdent(document.tasks, list(task_ids)), "dry_run": True})
        return
    changes = outdent_tasks(document.tasks, list(task_ids))
    warnings = None if changes else ["No task could be outdented"]
    emit_success(
        {
            **document.to_dict(),
            "changes": [change.to_dict() for change in changes],
        },
        warnings=warnings,
    )


@edit_group.command("group")
@click.argument("selected_ids", nargs=-1, required=True)
@click.option("--name", "group_name", default=None, help="Name of the new summary task")
@click.option("--dry-run", is_flag=True, help="Only report whether the edit is allowed")
@schedule_input_option
@click.pass_context
@cli_command("edit-group")
def group_cmd(
    ctx: click.Context,
    selected_ids: Tuple[str, ...],
    group_name: Optional[str],
    dry_run: bool,
    source: IO[str],
) -> None:
    """Wrap the selected tasks in a new summary task."""
    cli_ctx = get_context(ctx)
    document = read_schedule(source)
    if dry_run:
        allowed = can_group(document.tasks, list(selected_ids), max_depth=cli_ctx.max_depth)
        emit_success({"allowed": allowed, "dry_run": True})
        return
    result = group_tasks(
        document.tasks,
        list(selected_ids),
        max_depth=cli_ctx.max_depth,
        group_name=group_name or cli_ctx.hierarchy.default_group_name,
        color=cli_ctx.hierarchy.default_task_color,
    )
    if isinstance(result, StructureError):
        emit_error(
            result.error,
            code=(
                "MAX_DEPTH_EXCEEDED"
                if result.error_code == "MAX_DEPTH_EXCEEDED"
                else "INVALID_SELECTION"
            ),
            error_type="validation",
            remediation="Select one or more tasks that share the same parent",
            details={"selected_ids": list(selected_ids), "max_depth": cli_ctx.max_depth},
        )

    emit_success({**document.to_dict(), "group": result.to_dict()})


@edit_group.command("ungroup")
@click.argument("selected_ids", nargs=-1, required=True)
@schedule_input_option
@click.pass_context
@cli_command("edit-ungroup")
def ungroup_cmd(ctx: click.Context, selected_ids: Tuple[str, ...], source: IO[str]) -> None:
    """Dissolve the selected summary tasks."""
    document = read_schedule(source)
    result = ungroup_tasks(document.tasks, list(selected_ids), document.dependencies)
    warnings = None if result else ["No selected summary task has children; nothing to ungroup"]
    emit_success(
        {
            **document.to_dict(),
            "ungroup": result.to_dict() if result else None,
        },
        warnings=warnings,
    )


def _set_open(source: IO[str], task_id: Optional[str], all_tasks: bool, open_: bool) -> None:
    if not all_tasks and not task_id:
        emit_error(
            "Provide a TASK_ID or --all",
            code="MISSING_REQUIRED",
            error_type="validation",
            remediation="Pass the summary task ID, or --all for every summary",
        )
    document = read_schedule(source)
    if all_tasks:
        changed = set_all_tasks_open(document.tasks, open_)
    else:
        _require_task(document.tasks, task_id)
        changed = set_task_open(document.tasks, task_id, open_)
    emit_success({"tasks": document.tasks, "changed": changed})


@edit_group.command("expand")
@click.argument("task_id", required=False)
@click.option("--all", "all_tasks", is_flag=True, help="Expand every summary task")
@schedule_input_option
@click.pass_context
@cli_command("edit-expand")
def expand_cmd(ctx: click.Context, task_id: Optional[str], all_tasks: bool, source: IO[str]) -> None:
    """Expand a summary task so its children are shown."""
    _set_open(source, task_id, all_tasks, True)


@edit_group.command("collapse")
@click.argument("task_id", required=False)
@click.option("--all", "all_tasks", is_flag=True, help="Collapse every summary task")
@schedule_input_option
@click.pass_context
@cli_command("edit-collapse")
def collapse_cmd(ctx: click.Context, task_id: Optional[str], all_tasks: bool, source: IO[str]) -> None:
    """Collapse a summary task so its children are hidden."""
    _set_open(source, task_id, all_tasks, False)


@edit_group.command("toggle")
@click.argument("task_id")
@schedule_input_option
@click.pass_context
@cli_command("edit-toggle")
def toggle_cmd(ctx: click.Context, task_id: str, source: IO[str]) -> None:
    """Flip the expanded state of a summary task."""
    document = read_schedule(source)
    _require_task(document.tasks, task_id)
    changed = toggle_task_collapsed(document.tasks, task_id)
    emit_success({"tasks": document.tasks, "changed": changed})
