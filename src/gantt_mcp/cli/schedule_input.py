"""Schedule document input for CLI commands.

Every command reads one JSON schedule from ``--input`` (default: stdin).
"""

from typing import IO, Any, Callable

import click

from gantt_mcp.cli.output import emit_error
from gantt_mcp.core.validation import ScheduleDocument, parse_schedule_document


def schedule_input_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the ``--input`` option that supplies the schedule document."""
    return click.option(
        "--input",
        "-i",
        "source",
        type=click.File("r"),
        default="-",
        show_default=True,
        help="JSON schedule file ('-' for stdin)",
    )(func)


def read_schedule(source: IO[str]) -> ScheduleDocument:
    """Parse the schedule from ``source``, exiting with a JSON error if invalid."""
    document, error = parse_schedule_document(source.read())
    if document is None:
        emit_error(
            error or "Invalid schedule document",
            code="INVALID_FORMAT",
            error_type="validation",
            remediation='Provide JSON like {"tasks": [...], "dependencies": [...]}',
            details={"source": getattr(source, "name", "-")},
        )
    return document
