"""Clipboard commands for the gantt CLI.

Row copy/paste moves whole subtrees with their internal dependencies;
cell copy/paste moves a single field value between tasks. Clipboard
payloads are the prefixed text produced by ``gantt clipboard copy`` and
``gantt clipboard copy-cell``.
"""

from typing import IO, Optional, Tuple

import click

from gantt_mcp.cli.logging import cli_command, get_cli_logger
from gantt_mcp.cli.output import emit_error, emit_success
from gantt_mcp.cli.registry import get_context
from gantt_mcp.cli.schedule_input import read_schedule, schedule_input_option
from gantt_mcp.core.clipboard import (
    EDITABLE_FIELDS,
    RowPasteError,
    apply_cut_deletion,
    apply_summary_recalculation,
    can_paste_cell_value,
    copy_rows,
    decode_cell,
    decode_rows,
    detect_payload_kind,
    encode_cell,
    encode_rows,
    get_clear_value_for_field,
    prepare_row_paste,
)
from gantt_mcp.core.hierarchy import build_task_index
from gantt_mcp.core.summary import recalculate_summary_ancestors
from gantt_mcp.core.validation import ScheduleInputError, validate_dependencies, validate_tasks

logger = get_cli_logger()


def _find_task(tasks, task_id: str) -> dict:
    task = build_task_index(tasks).get(task_id)
    if task is None:
        emit_error(
            f"Task not found: {task_id}",
            code="TASK_NOT_FOUND",
            error_type="not_found",
            remediation="Verify the task ID with: gantt tree flatten",
            details={"task_id": task_id},
        )
    return task


@click.group("clipboard")
def clipboard_group() -> None:
    """Row and cell copy/paste."""
    pass


@clipboard_group.command("copy")
@click.argument("selected_ids", nargs=-1, required=True)
@schedule_input_option
@click.pass_context
@cli_command("clipboard-copy")
def copy_cmd(ctx: click.Context, selected_ids: Tuple[str, ...], source: IO[str]) -> None:
    """Copy the selected rows, their hidden children and internal dependencies."""
    document = read_schedule(source)
    copied = copy_rows(document.tasks, document.dependencies, list(selected_ids))
    emit_success(
        {
            **copied.to_dict(),
            "clipboard_text": encode_rows(copied.tasks, copied.dependencies),
        }
    )


@clipboard_group.command("paste")
@click.option(
    "--clipboard",
    "clipboard_file",
    type=click.File("r"),
    required=True,
    help="File holding the clipboard text from 'gantt clipboard copy'",
)
@click.option("--active", "active_task_id", default=None, help="Task of the active cell")
@click.option("--selected", "selected_ids", multiple=True, help="Selected task (repeatable)")
@click.option("--collapsed", "collapsed_ids", multiple=True, help="Collapsed task (repeatable)")
@click.option(
    "--cut",
    "cut_task_ids",
    multiple=True,
    help="Source row of a cut (repeatable); removed once the paste is applied",
)
@schedule_input_option
@click.pass_context
@cli_command("clipboard-paste")
def paste_cmd(
    ctx: click.Context,
    clipboard_file: IO[str],
    active_task_id: Optional[str],
    selected_ids: Tuple[str, ...],
    collapsed_ids: Tuple[str, ...],
    cut_task_ids: Tuple[str, ...],
    source: IO[str],
) -> None:
    """Paste copied rows at the active or selected position.

    With --cut, the cut source rows and every dependency touching them are
    removed after the paste.
    """
    cli_ctx = get_context(ctx)
    rows = decode_rows(clipboard_file.read().strip())
    if rows is None or not rows.tasks:
        emit_error(
            "Clipboard does not contain copied rows",
            code="INVALID_FORMAT",
            error_type="validation",
            remediation="Save the clipboard_text from 'gantt clipboard copy' and pass it with --clipboard",
        )
    try:
        clipboard_tasks = validate_tasks(rows.tasks, "clipboard_tasks")
        clipboard_dependencies = validate_dependencies(rows.dependencies, "clipboard_dependencies")
    except ScheduleInputError as exc:
        emit_error(
            str(exc),
            code="VALIDATION_ERROR",
            error_type="validation",
            remediation="Copy the rows again with 'gantt clipboard copy'",
            details={"field": exc.field},
        )

    document = read_schedule(source)
    result = prepare_row_paste(
        clipboard_tasks,
        clipboard_dependencies,
        document.tasks,
        active_task_id=active_task_id,
        selected_ids=selected_ids,
        collapsed_ids=collapsed_ids,
        max_depth=cli_ctx.max_depth,
    )
    if isinstance(result, RowPasteError):
        emit_error(
            result.error,
            code=result.error_code,
            error_type="validation",
            remediation="Paste at a shallower position or copy fewer levels",
            details={**result.details, "max_depth": cli_ctx.max_depth},
        )

    merged = apply_summary_recalculation(result.merged_tasks, result.target_parent)
    dependencies = document.dependencies + result.remapped_dependencies
    cut = None
    if cut_task_ids:
        cut = apply_cut_deletion(merged, cut_task_ids, dependencies)
        merged, dependencies = cut.tasks, cut.dependencies

    emit_success(
        {
            "tasks": merged,
            "dependencies": dependencies,
            "new_task_ids": [task["id"] for task in result.new_tasks],
            "id_mapping": result.id_mapping,
            "insert_order": result.insert_order,
            "target_parent": result.target_parent,
            "operation": "cut" if cut else "copy",
            "cut": cut.to_dict() if cut else None,
        }
    )


@clipboard_group.command("copy-cell")
@click.argument("task_id")
@click.argument("field", type=click.Choice(sorted(EDITABLE_FIELDS)))
@schedule_input_option
@click.pass_context
@cli_command("clipboard-copy-cell")
def copy_cell_cmd(ctx: click.Context, task_id: str, field: str, source: IO[str]) -> None:
    """Copy one field value of TASK_ID."""
    document = read_schedule(source)
    task = _find_task(document.tasks, task_id)
    value = task.get(field)
    emit_success(
        {
            "task_id": task_id,
            "field": field,
            "value": value,
            "clipboard_text": encode_cell(value, field),
        }
    )


@clipboard_group.command("paste-cell")
@click.argument("task_id")
@click.argument("field", type=click.Choice(sorted(EDITABLE_FIELDS)))
@click.option(
    "--clipboard",
    "clipboard_file",
    type=click.File("r"),
    required=True,
    help="File holding the clipboard text from 'gantt clipboard copy-cell'",
)
@schedule_input_option
@click.pass_context
@cli_command("clipboard-paste-cell")
def paste_cell_cmd(
    ctx: click.Context,
    task_id: str,
    field: str,
    clipboard_file: IO[str],
    source: IO[str],
) -> None:
    """Paste a copied cell value into FIELD of TASK_ID."""
    text = clipboard_file.read().strip()
    cell = decode_cell(text)
    if cell is None:
        emit_error(
            "Clipboard does not contain a copied cell",
            code="INVALID_FORMAT",
            error_type="validation",
            remediation="Save the clipboard_text from 'gantt clipboard copy-cell' and pass it with --clipboard",
            details={"payload_kind": detect_payload_kind(text)},
        )

    document = read_schedule(source)
    task = _find_task(document.tasks, task_id)
    check = can_paste_cell_value(cell["field"], field, task)
    if not check.valid:
        emit_error(
            check.error,
            code="VALIDATION_ERROR",
            error_type="validation",
            details={"source_field": cell["field"], "target_field": field, "task_id": task_id},
        )

    task[field] = cell["value"]
    cascade = recalculate_summary_ancestors(document.tasks, [task.get("parent")])
    emit_success(
        {
            **document.to_dict(),
            "cascade": [entry.to_dict() for entry in cascade],
        }
    )


@clipboard_group.command("clear-cell")
@click.argument("task_id")
@click.argument("field", type=click.Choice(sorted(EDITABLE_FIELDS)))
@schedule_input_option
@click.pass_context
@cli_command("clipboard-clear-cell")
def clear_cell_cmd(ctx: click.Context, task_id: str, field: str, source: IO[str]) -> None:
    """Reset FIELD of TASK_ID to its empty value (cut)."""
    cli_ctx = get_context(ctx)
    document = read_schedule(source)
    task = _find_task(document.tasks, task_id)
    task[field] = get_clear_value_for_field(field, default_color=cli_ctx.hierarchy.default_task_color)
    emit_success(document.to_dict())
