import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from mssql_mcp.core.config import settings
from mssql_mcp.core.exceptions import DatabaseConnectionError
from mssql_mcp.core.sql.identifiers import quote

logger = logging.getLogger(__name__)

# Marks a pooled connection whose database context was changed with USE
SWITCHED_DATABASE_KEY = "mssql_mcp.switched_database"

# Marks a pooled connection that ran caller SQL (SET options, #temp tables,
# a chained USE all live on the session)
CALLER_SESSION_KEY = "mssql_mcp.caller_session"


class ConnectionGateway:
    """
    Hands out connections from the engine pool, optionally switched to
    another database of the same instance.

    Every connection handed out must come back through release(); connect()
    does that for you.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def open(self, database_name: Optional[str] = None) -> AsyncConnection:
        """
        Open a connection and switch database when a name is given.

        The switch statement is built here from the bracket-quoted name and
        never from caller SQL. On any failure the connection is released
        before the error leaves this method.

        Raises:
            DatabaseConnectionError: connect or switch failed.
        """
        try:
            connection = await self.engine.connect()
        except Exception as error:
            logger.error(f"Failed to open database connection: {error}")
            raise DatabaseConnectionError(
                f"Could not open a database connection: {error}"
            ) from error

        logger.debug("Database connection opened")

        if database_name is None or not database_name.strip():
            return connection

        try:
            await connection.exec_driver_sql(f"USE {quote(database_name)};")
        except asyncio.CancelledError:
            await connection.close()
            raise
        except Exception as error:
            await connection.close()
            logger.error(f"Failed to switch to database {database_name!r}: {error}")
            raise DatabaseConnectionError(
                f"Could not switch to database '{database_name}': {error}"
            ) from error

        connection.info[SWITCHED_DATABASE_KEY] = database_name
        logger.debug(f"Switched to database {database_name!r}")
        return connection

    async def release(self, connection: AsyncConnection) -> None:
        """
        Return a connection to the pool.
        Switched connections and connections that ran caller SQL are
        discarded, so the pool never hands out a session carrying another
        caller's database, SET options or temp tables.
        """
        if connection.closed:
            return
        switched = connection.info.pop(SWITCHED_DATABASE_KEY, None) is not None
        used = connection.info.pop(CALLER_SESSION_KEY, False)
        if switched or used:
            await connection.invalidate()
        await connection.close()

    @staticmethod
    def mark_caller_session(connection: AsyncConnection) -> None:
        """Flag a connection so release() discards it instead of pooling it."""
        connection.info[CALLER_SESSION_KEY] = True

    @asynccontextmanager
    async def connect(
        self, database_name: Optional[str] = None
    ) -> AsyncIterator[AsyncConnection]:
        """Open a connection for the duration of a block, released on every exit."""
        connection = await self.open(database_name)
        try:
            yield connection
        finally:
            await self.release(connection)


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    pool_pre_ping=settings.POOL_PRE_PING,
)

# One gateway (and one pool) per process
gateway = ConnectionGateway(engine)


def get_gateway() -> ConnectionGateway:
    return gateway
