"""Command registry for the gantt CLI.

Centralized registration of all command groups.
Commands are organized by domain (tree, edit, clipboard).
"""

from typing import Optional

import click

from gantt_mcp.cli.config import CLIContext

# Module-level storage for CLI context (for testing)
_cli_context: Optional[CLIContext] = None


def set_context(ctx: CLIContext) -> None:
    """Set the CLI context at module level.

    Primarily used for testing when not using Click's context.

    Args:
        ctx: The CLIContext to store.
    """
    global _cli_context
    _cli_context = ctx


def get_context(ctx: Optional[click.Context] = None) -> CLIContext:
    """Get CLI context from Click context or module-level storage.

    Args:
        ctx: Optional Click context with cli_context stored in obj.
             If None, returns module-level context.

    Returns:
        The CLIContext instance.

    Raises:
        RuntimeError: If no context is available.
    """
    if ctx is not None:
        return ctx.obj["cli_context"]

    if _cli_context is not None:
        return _cli_context

    raise RuntimeError("No CLI context available. Call set_context() first.")


def register_all_commands(cli: click.Group) -> None:
    """Register all command groups with the CLI.

    Command groups are lazily imported to avoid circular dependencies
    and improve startup time.

    Args:
        cli: The main Click group to register commands with.
    """
    from gantt_mcp.cli.commands import clipboard_group, edit_group, tree_group

    cli.add_command(tree_group)
    cli.add_command(edit_group)
    cli.add_command(clipboard_group)

    @cli.command("version")
    @click.pass_context
    def version(ctx: click.Context) -> None:
        """Show CLI version information."""
        from gantt_mcp.cli.output import emit

        cli_ctx = get_context(ctx)

        emit(
            {
                "version": cli_ctx.config.server_version,
                "name": "gantt",
                "json_only": True,
                "max_depth": cli_ctx.max_depth,
            }
        )
