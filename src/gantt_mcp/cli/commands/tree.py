"""Read-only task tree commands for the gantt CLI.

Provides commands for display flattening, order normalization, summary
dates and move-set resolution.
"""

from typing import IO, Tuple

import click

from gantt_mcp.cli.logging import cli_command, get_cli_logger
from gantt_mcp.cli.output import emit_error, emit_success
from gantt_mcp.cli.schedule_input import read_schedule, schedule_input_option
from gantt_mcp.core.flatten import build_flattened_task_list, normalize_task_order
from gantt_mcp.core.hierarchy import build_task_index
from gantt_mcp.core.selection import get_effective_tasks_to_move
from gantt_mcp.core.summary import calculate_summary_dates, recalculate_summary_ancestors

logger = get_cli_logger()


@click.group("tree")
def tree_group() -> None:
    """Task tree queries."""
    pass


@tree_group.command("flatten")
@schedule_input_option
@click.option(
    "--collapsed",
    "collapsed_ids",
    multiple=True,
    help="Treat this task as collapsed (repeatable)",
)
@click.pass_context
@cli_command("tree-flatten")
def flatten_cmd(ctx: click.Context, source: IO[str], collapsed_ids: Tuple[str, ...]) -> None:
    """List tasks in display order with their depth."""
    document = read_schedule(source)
    rows = build_flattened_task_list(document.tasks, collapsed_ids)
    emit_success({"rows": [row.to_dict() for row in rows], "count": len(rows)})


@tree_group.command("normalize")
@schedule_input_option
@click.pass_context
@cli_command("tree-normalize")
def normalize_cmd(ctx: click.Context, source: IO[str]) -> None:
    """Rewrite order values to match display order."""
    document = read_schedule(source)
    normalize_task_order(document.tasks)
    emit_success(document.to_dict())


@tree_group.command("summary-dates")
@click.argument("task_id")
@schedule_input_option
@click.pass_context
@cli_command("tree-summary-dates")
def summary_dates_cmd(ctx: click.Context, task_id: str, source: IO[str]) -> None:
    """Show the date range derived from a summary task's children.

    TASK_ID is the summary task identifier.
    """
    document = read_schedule(source)
    if task_id not in build_task_index(document.tasks):
        emit_error(
            f"Task not found: {task_id}",
            code="TASK_NOT_FOUND",
            error_type="not_found",
            remediation="Verify the task ID with: gantt tree flatten",
            details={"task_id": task_id},
        )

    dates = calculate_summary_dates(document.tasks, task_id)
    emit_success(
        {
            "task_id": task_id,
            "summary_dates": dates.to_dict() if dates else None,
        }
    )


@tree_group.command("cascade")
@click.argument("parent_ids", nargs=-1, required=True)
@schedule_input_option
@click.pass_context
@cli_command("tree-cascade")
def cascade_cmd(ctx: click.Context, parent_ids: Tuple[str, ...], source: IO[str]) -> None:
    """Recalculate summary dates upward from changed parents.

    PARENT_IDS are the parents whose children changed.
    """
    document = read_schedule(source)
    cascade = recalculate_summary_ancestors(document.tasks, list(parent_ids))
    logger.debug("Summary cascade finished", updated=len(cascade))
    emit_success(
        {
            **document.to_dict(),
            "cascade": [entry.to_dict() for entry in cascade],
        }
    )


@tree_group.command("move-set")
@click.argument("selected_ids", nargs=-1, required=True)
@schedule_input_option
@click.pass_context
@cli_command("tree-move-set")
def move_set_cmd(ctx: click.Context, selected_ids: Tuple[str, ...], source: IO[str]) -> None:
    """Resolve a selection into every task a move must shift.

    SELECTED_IDS are the selected task identifiers.
    """
    document = read_schedule(source)
    task_ids = get_effective_tasks_to_move(document.tasks, list(selected_ids))
    emit_success({"task_ids": task_ids, "count": len(task_ids)})
