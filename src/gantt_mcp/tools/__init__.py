"""MCP tool registration surface."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gantt_mcp.tools.schedule import register_schedule_tool

if TYPE_CHECKING:  # pragma: no cover - import-time typing only
    from mcp.server.fastmcp import FastMCP
    from gantt_mcp.config import ServerConfig


def register_tools(mcp: "FastMCP", config: "ServerConfig") -> None:
    """Register all tool routers."""
    register_schedule_tool(mcp, config)


__all__ = [
    "register_tools",
    "register_schedule_tool",
]
