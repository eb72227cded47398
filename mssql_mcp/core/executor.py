import logging
from typing import Optional

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from mssql_mcp.core.database import ConnectionGateway
from mssql_mcp.core.exceptions import (
    DatabaseConnectionError,
    FormattingError,
    QueryExecutionError,
)
from mssql_mcp.core.schemas import ResultSet
from mssql_mcp.core.sql import classifier, formatter


# -----------------------------------------------------------------------------
# EXECUTOR MODULE
# Purpose: the single operation callers use to run ad-hoc SQL.
# classify -> connect (+ optional USE) -> execute -> release -> render
# Every outcome comes back as text; only task cancellation propagates.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

CONNECTION_ERROR_PREFIX = "Connection Error: "
EXECUTION_ERROR_PREFIX = "SQL Error: "
FORMATTING_ERROR_PREFIX = "Internal Formatting Error: "
UNEXPECTED_ERROR_PREFIX = "Error executing SQL query: "


def _preview(sql: str, limit: int = 120) -> str:
    flat = " ".join(sql.split())
    return flat if len(flat) <= limit else flat[:limit] + "..."


async def fetch_result_set(connection: AsyncConnection, sql_query: str) -> ResultSet:
    """
    Execute caller SQL on an open connection and buffer the whole result.

    The text goes to the driver untouched (no bind-parameter parsing).
    Statements that return no rows (SET ...) give an empty ResultSet.
    The connection is flagged so it never goes back to the pool.

    Raises:
        QueryExecutionError: the database or driver rejected the statement.
    """
    ConnectionGateway.mark_caller_session(connection)
    try:
        result = await connection.exec_driver_sql(sql_query)
        if not result.returns_rows:
            return ResultSet.empty()
        columns = list(result.keys())
        rows = [list(row) for row in result.all()]
    except DBAPIError as error:
        raise QueryExecutionError(str(error.orig)) from error
    except SQLAlchemyError as error:
        raise QueryExecutionError(str(error)) from error

    return ResultSet(columns=columns, rows=rows)


class SafeQueryExecutor:
    """Runs caller SQL only after the classifier accepted it."""

    def __init__(self, gateway: ConnectionGateway):
        self.gateway = gateway

    async def execute_read_only_query(
        self, sql_query: str, database_name: Optional[str] = None
    ) -> str:
        """
        Validate, execute and render a read-only query.

        Args:
            sql_query: Raw caller SQL.
            database_name: Optional database to switch to before executing.

        Returns:
            Rendered rows, the classifier reason, or a prefixed error text.

        Example:
            text = await executor.execute_read_only_query("SELECT 1 AS One")
        """
        verdict = classifier.validate(sql_query)
        if not verdict.valid:
            logger.warning(f"Query validation failed: {verdict.reason}")
            return verdict.reason

        logger.debug(
            f"Executing validated query on database {database_name or 'default'}: "
            f"{_preview(sql_query)}"
        )

        try:
            async with self.gateway.connect(database_name) as connection:
                result_set = await fetch_result_set(connection, sql_query)
            body = formatter.render(result_set)

        except DatabaseConnectionError as error:
            logger.error(f"Connection failed for query: {error}")
            return CONNECTION_ERROR_PREFIX + str(error)

        except QueryExecutionError as error:
            logger.error(f"SQL error executing query: {error}")
            return EXECUTION_ERROR_PREFIX + str(error)

        except FormattingError as error:
            logger.exception(f"Result set could not be rendered: {error}")
            return FORMATTING_ERROR_PREFIX + str(error)

        except Exception as error:
            logger.exception(f"Error executing query: {error}")
            return UNEXPECTED_ERROR_PREFIX + str(error)

        logger.debug(f"Query returned {len(result_set.rows)} row(s)")
        return decorate(body, len(result_set.rows), database_name)


def decorate(body: str, row_count: int, database_name: Optional[str] = None) -> str:
    """Add the database banner and the row-count footer around rendered rows."""
    text = body
    if row_count:
        text += f"\n({row_count} row(s) returned)\n"
    if database_name is not None and database_name.strip():
        text = f"Database: {database_name}\n\n" + text
    return text
