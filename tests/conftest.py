import os

# Force a throwaway SQLite URL before the app modules build their engine
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./mssql_mcp_test.db"

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from mssql_mcp.core.database import ConnectionGateway
from mssql_mcp.core.executor import SafeQueryExecutor
from mssql_mcp.main import app
from mssql_mcp.tools.registry import create_tool_registry, get_tool_registry


# File database per test so every test starts from the same rows
@pytest_asyncio.fixture(scope="function")
async def sqlite_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'readonly.db'}",
        poolclass=AsyncAdaptedQueuePool,
    )
    async with engine.begin() as conn:
        await conn.exec_driver_sql(
            "CREATE TABLE Users (Id INTEGER PRIMARY KEY, Name TEXT)"
        )
        await conn.exec_driver_sql(
            "INSERT INTO Users (Id, Name) VALUES (1, 'Ann'), (2, NULL)"
        )
        await conn.exec_driver_sql(
            "CREATE TABLE AuditLog (UpdatedDate TEXT, InsertedBy TEXT)"
        )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def gateway(sqlite_engine):
    return ConnectionGateway(sqlite_engine)


@pytest_asyncio.fixture(scope="function")
async def executor(gateway):
    return SafeQueryExecutor(gateway)


@pytest_asyncio.fixture(scope="function")
async def registry(gateway):
    return create_tool_registry(gateway)


# Client
@pytest_asyncio.fixture(scope="function")
async def client(registry):
    app.dependency_overrides[get_tool_registry] = lambda: registry

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
