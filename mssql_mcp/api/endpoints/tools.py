import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from mssql_mcp.core import schemas
from mssql_mcp.core.exceptions import UnknownToolError
from mssql_mcp.tools.registry import ToolRegistry, get_tool_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sse", tags=["Tools"])

registry_dep = Annotated[ToolRegistry, Depends(get_tool_registry)]


@router.get("/tools", response_model=List[schemas.ToolDescriptor])
async def list_tools(registry: registry_dep):
    """Return every registered tool with its parameter schema."""
    return [tool.descriptor() for tool in registry.all_tools()]


@router.post("/invoke", response_model=schemas.ToolInvokeResponse)
async def invoke_tool(payload: schemas.ToolInvokeRequest, registry: registry_dep):
    """
    Invoke a tool by name (or alias) with its params.
    Tool handlers return text, including for rejected or failed queries.
    """
    try:
        tool = registry.lookup(payload.tool)
    except UnknownToolError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tool '{payload.tool}' not found",
        )

    try:
        result = await registry.invoke(tool.name, payload.params)
    except ValidationError as error:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=error.errors(include_url=False),
        )
    except Exception as error:
        logger.error(f"Error invoking tool {tool.name}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error invoking tool: {error}",
        )

    return schemas.ToolInvokeResponse(tool=tool.name, result=result)
