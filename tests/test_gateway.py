import pytest

from mssql_mcp.core.database import SWITCHED_DATABASE_KEY, ConnectionGateway
from mssql_mcp.core.exceptions import DatabaseConnectionError


class FakeConnection:
    def __init__(self, fail_on_use: bool = False):
        self.statements = []
        self.info = {}
        self.closed = False
        self.invalidated = False
        self.fail_on_use = fail_on_use

    async def exec_driver_sql(self, sql):
        self.statements.append(sql)
        if self.fail_on_use:
            raise RuntimeError("Database 'Nope' does not exist")

    async def invalidate(self):
        self.invalidated = True

    async def close(self):
        self.closed = True


class FakeEngine:
    def __init__(self, connection=None, error=None):
        self.connection = connection
        self.error = error

    async def connect(self):
        if self.error is not None:
            raise self.error
        return self.connection


@pytest.mark.asyncio
async def test_open_switches_with_quoted_name():
    connection = FakeConnection()
    gateway = ConnectionGateway(FakeEngine(connection))

    opened = await gateway.open("My]Db")

    assert opened is connection
    assert connection.statements == ["USE [My]]Db];"]
    assert connection.info[SWITCHED_DATABASE_KEY] == "My]Db"


@pytest.mark.asyncio
async def test_open_without_name_does_not_switch():
    connection = FakeConnection()
    gateway = ConnectionGateway(FakeEngine(connection))

    await gateway.open(None)
    await gateway.open("   ")

    assert connection.statements == []


@pytest.mark.asyncio
async def test_failed_switch_releases_connection():
    connection = FakeConnection(fail_on_use=True)
    gateway = ConnectionGateway(FakeEngine(connection))

    with pytest.raises(DatabaseConnectionError) as error:
        await gateway.open("Nope")

    assert connection.closed is True
    assert "Nope" in str(error.value)


@pytest.mark.asyncio
async def test_connect_failure_is_wrapped():
    gateway = ConnectionGateway(FakeEngine(error=OSError("login timeout")))

    with pytest.raises(DatabaseConnectionError) as error:
        await gateway.open()

    assert "login timeout" in str(error.value)
    assert isinstance(error.value.__cause__, OSError)


@pytest.mark.asyncio
async def test_release_discards_switched_connection():
    connection = FakeConnection()
    gateway = ConnectionGateway(FakeEngine(connection))

    async with gateway.connect("Sales"):
        pass

    assert connection.invalidated is True
    assert connection.closed is True


@pytest.mark.asyncio
async def test_release_keeps_default_connection_pooled():
    connection = FakeConnection()
    gateway = ConnectionGateway(FakeEngine(connection))

    with pytest.raises(ValueError):
        async with gateway.connect():
            raise ValueError("boom")

    assert connection.invalidated is False
    assert connection.closed is True


@pytest.mark.asyncio
async def test_sqlite_connection_returns_to_pool(gateway, sqlite_engine):
    async with gateway.connect() as connection:
        result = await connection.exec_driver_sql("SELECT COUNT(*) FROM Users")
        assert result.scalar() == 2
        assert sqlite_engine.sync_engine.pool.checkedout() == 1

    assert sqlite_engine.sync_engine.pool.checkedout() == 0


@pytest.mark.asyncio
async def test_sqlite_switch_failure_leaves_nothing_checked_out(gateway, sqlite_engine):
    """SQLite has no USE statement, so the switch step fails"""
    with pytest.raises(DatabaseConnectionError):
        await gateway.open("Other")

    assert sqlite_engine.sync_engine.pool.checkedout() == 0


@pytest.mark.asyncio
async def test_release_discards_connection_that_ran_caller_sql():
    connection = FakeConnection()
    gateway = ConnectionGateway(FakeEngine(connection))

    async with gateway.connect() as opened:
        ConnectionGateway.mark_caller_session(opened)

    assert connection.invalidated is True
    assert connection.closed is True
    assert connection.info == {}
