"""
MCP server exposing the WHOOP API as tools over stdio.

To run: python -m whoop_mcp.server   (or the `whoop-mcp` console script)

For Claude Desktop, add to claude_desktop_config.json:
{
  "mcpServers": {
    "whoop": {
      "command": "whoop-mcp",
      "env": {"WHOOP_CLIENT_ID": "...", "WHOOP_CLIENT_SECRET": "..."}
    }
  }
}
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from whoop_config.settings import init_runtime
from whoop_mcp.app_context import ServerContext, build_context
from whoop_mcp.constants import SERVER_NAME, SERVER_VERSION
from whoop_mcp.models import input_schema
from whoop_mcp.tools import TOOLS, ToolDispatcher, ToolName, ToolResult

logger = logging.getLogger(__name__)


def list_tool_definitions() -> list[types.Tool]:
    return [
        types.Tool(
            name=name.value,
            description=TOOLS[name].description,
            inputSchema=input_schema(TOOLS[name].input_model),
        )
        for name in ToolName
    ]


def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.text)],
        isError=result.is_error,
    )


def create_server(ctx: ServerContext | None = None) -> Server:
    dispatcher = ToolDispatcher(ctx or build_context())
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return list_tool_definitions()

    # The dispatcher validates inputs itself so callers get its error messages.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        return to_call_tool_result(dispatcher.call(name, arguments))

    return server


async def serve() -> None:
    server = create_server()
    logger.info("Starting %s %s on stdio", SERVER_NAME, SERVER_VERSION)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    # Entry points (console_scripts) call main() directly, so we must perform
    # runtime initialization here (dotenv + logging).
    init_runtime()
    asyncio.run(serve())


if __name__ == "__main__":
    main()
