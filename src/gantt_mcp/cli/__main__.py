"""gantt CLI module entry point.

Enables running the CLI via: python -m gantt_mcp.cli
"""

from gantt_mcp.cli.main import cli

if __name__ == "__main__":
    cli()
