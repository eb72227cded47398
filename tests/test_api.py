import pytest
from httpx import ASGITransport, AsyncClient

from mssql_mcp.core.sql import classifier
from mssql_mcp.main import MCP_MOUNT_PATH, app
from mssql_mcp.server import build_mcp_server


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert "read-only" in response.json()["message"]


@pytest.mark.asyncio
async def test_list_tools(client: AsyncClient):
    """Every registered tool is listed with its parameter schema"""
    response = await client.get("/sse/tools")

    assert response.status_code == 200
    tools = {tool["name"]: tool for tool in response.json()}
    assert set(tools) == {
        "get_tables",
        "get_columns",
        "get_relationships",
        "execute_sql",
        "get_stored_procedure",
    }
    execute_sql = tools["execute_sql"]
    assert "ExecuteSql" in execute_sql["aliases"]
    assert "sql_query" in execute_sql["parameters"]["properties"]
    assert execute_sql["parameters"]["required"] == ["sql_query"]


@pytest.mark.asyncio
async def test_invoke_execute_sql(client: AsyncClient):
    payload = {"tool": "execute_sql", "params": {"sql_query": "SELECT Id, Name FROM Users ORDER BY Id"}}
    response = await client.post("/sse/invoke", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["tool"] == "execute_sql"
    assert data["result"].splitlines()[0] == "Id\t|\tName"
    assert "2\t|\tNULL" in data["result"]


@pytest.mark.asyncio
async def test_invoke_by_alias(client: AsyncClient):
    payload = {"tool": "ExecuteSql", "params": {"sql_query": "SELECT 1 AS One"}}
    response = await client.post("/sse/invoke", json=payload)

    assert response.status_code == 200
    assert response.json()["tool"] == "execute_sql"


@pytest.mark.asyncio
async def test_rejected_query_is_a_successful_text_result(client: AsyncClient):
    """Rejections come back as text, not as an HTTP error"""
    payload = {"tool": "execute_sql", "params": {"sql_query": "DELETE FROM Users"}}
    response = await client.post("/sse/invoke", json=payload)

    assert response.status_code == 200
    assert response.json()["result"] == classifier.READ_ONLY_REASON


@pytest.mark.asyncio
async def test_unknown_tool(client: AsyncClient):
    response = await client.post("/sse/invoke", json={"tool": "drop_everything"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Tool 'drop_everything' not found"


@pytest.mark.asyncio
async def test_invalid_params(client: AsyncClient):
    response = await client.post("/sse/invoke", json={"tool": "execute_sql", "params": {}})
    assert response.status_code == 422

    response = await client.post(
        "/sse/invoke", json={"tool": "get_tables", "params": {"unexpected": 1}}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_catalog_failure_is_500(client: AsyncClient):
    """SQLite has no INFORMATION_SCHEMA, so the catalog query fails"""
    response = await client.post("/sse/invoke", json={"tool": "get_tables"})

    assert response.status_code == 500
    assert response.json()["detail"].startswith("Error invoking tool:")


@pytest.mark.asyncio
async def test_mcp_server_exposes_registry_tools(registry):
    mcp = build_mcp_server(registry)

    tools = await mcp.list_tools()

    assert sorted(tool.name for tool in tools) == sorted(
        tool.name for tool in registry.all_tools()
    )


@pytest.mark.asyncio
async def test_mcp_sse_transport_is_mounted():
    """The MCP message endpoint answers; without a session it refuses the post"""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://localhost:5000"
    ) as ac:
        response = await ac.post(f"{MCP_MOUNT_PATH}/messages/", json={})

    assert response.status_code == 400
    assert "session_id" in response.text


@pytest.mark.asyncio
async def test_invoke_accepts_camel_case_params(client: AsyncClient):
    payload = {"tool": "ExecuteSql", "params": {"sqlQuery": "SELECT Name FROM Users WHERE Id = 1"}}
    response = await client.post("/sse/invoke", json=payload)

    assert response.status_code == 200
    assert "Ann" in response.json()["result"]
