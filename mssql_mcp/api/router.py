from fastapi import APIRouter
from mssql_mcp.api.endpoints import tools

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(tools.router)
