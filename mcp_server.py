"""MCP Protocol Server for n8n workflow management.

Exposes the n8n workflow tools (list, create, get, update, delete,
activate, deactivate) to MCP clients over the stdio transport, using
the official MCP Python SDK.

IMPORTANT: All logging MUST go to stderr, not stdout!
The MCP protocol uses stdout for JSON-RPC communication.
"""

import asyncio
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool

from config import get_settings
from logging_config import get_logger, setup_logging

# Importing the tools package registers every tool
import mcp_tools  # noqa: F401
from mcp_tools.n8n.client import close_api_client, get_api_client
from mcp_tools.n8n.schemas import ToolResponse
from tool_registry import get_registry

logger = get_logger(__name__)

# Create the MCP server instance
mcp = Server("n8n-workflow-mcp")


@mcp.list_tools()
async def list_tools() -> list[Tool]:
    """Return the list of available MCP tools with their schemas."""
    return get_registry().get_mcp_tools()


# Handlers validate their own arguments so that malformed workflows come
# back with composition guidance instead of a bare schema error.
@mcp.call_tool(validate_input=False)
async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
    """Execute a tool and return the result."""
    response = await execute_tool(name, arguments)
    return response.to_call_tool_result()


async def execute_tool(name: str, arguments: dict[str, Any]) -> ToolResponse:
    """Execute the specified tool with the shared n8n API client."""
    # Arguments are not logged: workflow definitions may carry credentials
    logger.info(f"Calling tool: {name}")
    return await get_registry().execute(name, get_api_client(), arguments)


# -----------------------------------------------------------------------------
# Main Entry Point
# -----------------------------------------------------------------------------

async def main():
    """Run the MCP server using stdio transport."""
    settings = get_settings()
    setup_logging(settings.mcp_log_level, use_stderr=True)
    logger.info(
        "Starting n8n workflow MCP server (stdio transport)",
        extra={"settings": settings.get_safe_dict()},
    )

    try:
        async with stdio_server() as (read_stream, write_stream):
            await mcp.run(
                read_stream,
                write_stream,
                mcp.create_initialization_options()
            )
    finally:
        await close_api_client()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
