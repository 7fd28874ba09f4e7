from __future__ import annotations

import logging
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from perplexity_gateway.errors import GatewayError
from perplexity_gateway.mcp_server.server import ToolDispatcher

logger = logging.getLogger(__name__)

SERVER_NAME = "perplexity-gateway"
SERVER_VERSION = "0.1.0"


class ToolCallFailed(GatewayError):
    """Raised from the call handler so the MCP SDK marks the result ``isError``."""


class StdioAdapter:
    """Binds the dispatcher to an MCP server speaking over stdin/stdout."""

    def __init__(self, dispatcher: ToolDispatcher) -> None:
        self.dispatcher = dispatcher

    async def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema)
            for tool in self.dispatcher.registry.list()
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        outcome = await self.dispatcher.call(name, arguments)
        if not outcome.success:
            raise ToolCallFailed(f"Error: {outcome.message}")
        return [types.TextContent(type="text", text=outcome.text)]

    def build_server(self) -> Server:
        server = Server(SERVER_NAME, version=SERVER_VERSION)
        server.list_tools()(self.list_tools)
        # Argument checks belong to the dispatcher so both transports report them alike.
        server.call_tool(validate_input=False)(self.call_tool)
        return server

    async def run(self) -> None:
        server = self.build_server()
        async with stdio_server() as (read_stream, write_stream):
            logger.info(
                "Perplexity MCP server running on stdio",
                extra={"tools": self.dispatcher.registry.names()},
            )
            await server.run(read_stream, write_stream, server.create_initialization_options())
