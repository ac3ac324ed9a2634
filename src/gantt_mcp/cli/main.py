"""gantt CLI entry point.

JSON-only output for scripts and AI coding assistants.
"""

import click

from gantt_mcp.cli.config import create_context
from gantt_mcp.cli.registry import register_all_commands


@click.group()
@click.option(
    "--config",
    "config_file",
    envvar="GANTT_MCP_CONFIG_FILE",
    type=click.Path(exists=False, dir_okay=False),
    help="Path to a gantt-mcp TOML config file",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=1),
    default=None,
    help="Override the maximum hierarchy depth",
)
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, max_depth: int | None) -> None:
    """gantt - task tree editing for Gantt schedules.

    Commands read a JSON schedule ({"tasks": [...], "dependencies": [...]})
    from --input or stdin and write a JSON response envelope to stdout.
    """
    ctx.ensure_object(dict)
    ctx.obj["cli_context"] = create_context(config_file=config_file, max_depth=max_depth)


# Register all command groups
register_all_commands(cli)


if __name__ == "__main__":
    cli()
