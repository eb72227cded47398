"""
Entry point for MCP clients.

Run over stdio (Claude Desktop, Cursor or any MCP client):
    mssql-mcp
Serve over HTTP instead (tool endpoints under /sse, MCP over SSE under /mcp):
    mssql-mcp --http-only

Logs go to stderr so stdout stays reserved for the stdio protocol.
"""

import argparse
import logging

from mcp.server.fastmcp import FastMCP

from mssql_mcp.core.config import settings
from mssql_mcp.tools.registry import ToolRegistry, get_tool_registry

logger = logging.getLogger(__name__)


def build_mcp_server(registry: ToolRegistry) -> FastMCP:
    """Expose every registry tool on a FastMCP server under its canonical name."""
    mcp = FastMCP(settings.SERVER_NAME)
    for tool in registry.all_tools():
        mcp.add_tool(tool.handler, name=tool.name, description=tool.description)
    return mcp


def main(argv=None):
    parser = argparse.ArgumentParser(description="Read-only SQL Server MCP server")
    parser.add_argument(
        "--http-only",
        action="store_true",
        help="serve the HTTP app (tool endpoints and MCP over SSE) instead of stdio",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL)

    if args.http_only:
        import uvicorn

        logger.info(f"Serving HTTP tools on {settings.HTTP_HOST}:{settings.HTTP_PORT}")
        uvicorn.run(
            "mssql_mcp.main:app", host=settings.HTTP_HOST, port=settings.HTTP_PORT
        )
        return

    logger.info(f"Starting {settings.SERVER_NAME} on stdio")
    build_mcp_server(get_tool_registry()).run(transport="stdio")


if __name__ == "__main__":
    main()
