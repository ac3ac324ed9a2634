"""gantt CLI - command-line interface for task tree editing.

This CLI provides JSON-only output designed for scripts and AI coding
assistants. All commands emit structured JSON to stdout for reliable parsing.
"""

from gantt_mcp.cli.config import CLIContext, create_context
from gantt_mcp.cli.logging import (
    CLILogContext,
    cli_command,
    get_cli_logger,
    get_request_id,
    set_request_id,
)
from gantt_mcp.cli.main import cli
from gantt_mcp.cli.output import emit, emit_error, emit_success
from gantt_mcp.cli.registry import get_context, set_context

__all__ = [
    # Entry point
    "cli",
    # Context
    "CLIContext",
    "create_context",
    "get_context",
    "set_context",
    # Output
    "emit",
    "emit_error",
    "emit_success",
    # Logging
    "CLILogContext",
    "cli_command",
    "get_cli_logger",
    "get_request_id",
    "set_request_id",
]
