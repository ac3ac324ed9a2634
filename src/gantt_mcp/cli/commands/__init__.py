"""CLI command groups.

The CLI is organized into domain groups (`tree`, `edit`, `clipboard`).
"""

from gantt_mcp.cli.commands.clipboard import clipboard_group
from gantt_mcp.cli.commands.edit import edit_group
from gantt_mcp.cli.commands.tree import tree_group

__all__ = [
    "clipboard_group",
    "edit_group",
    "tree_group",
]
