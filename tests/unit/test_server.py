"""Unit tests for gantt_mcp.server module."""

import asyncio

from gantt_mcp.config import ServerConfig
from gantt_mcp.server import create_server


def test_create_server_registers_schedule_tool():
    server = create_server(ServerConfig(log_level="WARNING", structured_logging=False))
    assert server.name == "gantt-mcp"

    tools = asyncio.run(server.list_tools())
    assert [tool.name for tool in tools] == ["schedule"]
