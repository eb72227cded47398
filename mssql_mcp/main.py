import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from mssql_mcp.core.config import settings
from mssql_mcp.core.database import engine
from mssql_mcp.api.router import api_router
from mssql_mcp.server import build_mcp_server
from mssql_mcp.tools.registry import get_tool_registry

logging.basicConfig(level=settings.LOG_LEVEL)

# Path where MCP clients reach the SSE transport (GET /mcp/sse, POST /mcp/messages/)
MCP_MOUNT_PATH = "/mcp"


# Close the engine once everything is done and close all the pooled connections
@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await engine.dispose()


app = FastAPI(title="Read-only SQL Server Tools API", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)

# MCP protocol over HTTP, same tools as the stdio transport
app.mount(MCP_MOUNT_PATH, build_mcp_server(get_tool_registry()).sse_app())


@app.get("/")
async def root():
    return {"message": f"{settings.SERVER_NAME} is running (read-only)"}
