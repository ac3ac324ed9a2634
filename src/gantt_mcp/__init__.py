"""gantt-mcp - task-tree scheduling core with an MCP server and CLI."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("gantt-mcp")
except PackageNotFoundError:
    # Package not installed (development mode without editable install)
    __version__ = "0.1.0"

from gantt_mcp.server import create_server, main

__all__ = ["__version__", "create_server", "main"]
