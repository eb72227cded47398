import logging
from typing import List, Optional, Tuple

from sqlalchemy import text

from mssql_mcp.core.database import ConnectionGateway


# -----------------------------------------------------------------------------
# CATALOG MODULE
# Purpose: fixed schema lookups (tables, columns, foreign keys, procedures).
# These queries are static and parameterized, caller input only ever reaches
# them as bind values, so they bypass the query classifier.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "dbo"

TABLES_SQL = text(
    """
    SELECT TABLE_SCHEMA, TABLE_NAME
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_TYPE = 'BASE TABLE'
    ORDER BY TABLE_SCHEMA, TABLE_NAME
    """
)

COLUMNS_SQL = text(
    """
    SELECT
        COLUMN_NAME,
        DATA_TYPE,
        CHARACTER_MAXIMUM_LENGTH,
        IS_NULLABLE,
        COLUMNPROPERTY(object_id(TABLE_SCHEMA + '.' + TABLE_NAME), COLUMN_NAME, 'IsIdentity') AS IS_IDENTITY,
        (
            SELECT COUNT(*)
            FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
            JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
                ON kcu.CONSTRAINT_NAME = tc.CONSTRAINT_NAME
            WHERE kcu.TABLE_SCHEMA = c.TABLE_SCHEMA
                AND kcu.TABLE_NAME = c.TABLE_NAME
                AND kcu.COLUMN_NAME = c.COLUMN_NAME
                AND tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
        ) AS IS_PRIMARY_KEY
    FROM INFORMATION_SCHEMA.COLUMNS c
    WHERE TABLE_SCHEMA = :schema
        AND TABLE_NAME = :table_name
    ORDER BY ORDINAL_POSITION
    """
)

RELATIONSHIPS_SQL = text(
    """
    SELECT
        fk.name AS ForeignKey,
        OBJECT_NAME(fk.parent_object_id) AS TableName,
        COL_NAME(fkc.parent_object_id, fkc.parent_column_id) AS ColumnName,
        OBJECT_NAME(fk.referenced_object_id) AS ReferencedTableName,
        COL_NAME(fkc.referenced_object_id, fkc.referenced_column_id) AS ReferencedColumnName
    FROM sys.foreign_keys AS fk
    INNER JOIN sys.foreign_key_columns AS fkc
        ON fk.object_id = fkc.constraint_object_id
    ORDER BY TableName, ReferencedTableName
    """
)

PROCEDURE_SQL = text(
    """
    SELECT name, object_definition(object_id)
    FROM sys.procedures
    WHERE name = :sp_name
    """
)


def parse_table_name(table_name: str) -> Tuple[str, str]:
    """Split 'schema.table' (only on the first dot); bare names use dbo."""
    if "." in table_name:
        schema, table = table_name.split(".", 1)
        return schema, table
    return DEFAULT_SCHEMA, table_name


def describe_column(
    name: str,
    data_type: str,
    max_length,
    is_nullable: str,
    is_identity,
    is_primary_key,
) -> str:
    length_info = f"({max_length})" if max_length is not None else ""
    nullable_info = "NULL" if is_nullable == "YES" else "NOT NULL"
    identity_info = " IDENTITY" if is_identity == 1 else ""
    pk_info = " PRIMARY KEY" if (is_primary_key or 0) > 0 else ""
    return f"{name} | {data_type}{length_info} | {nullable_info}{identity_info}{pk_info}"


class SchemaRepository:
    """Read-only catalog lookups, one pooled connection per call."""

    def __init__(self, gateway: ConnectionGateway):
        self.gateway = gateway

    async def get_tables(self, database_name: Optional[str] = None) -> List[str]:
        logger.debug(f"Getting tables for database {database_name or 'default'}")

        async with self.gateway.connect(database_name) as connection:
            result = await connection.execute(TABLES_SQL)
            tables = [f"{schema}.{table}" for schema, table in result.all()]

        logger.debug(f"Found {len(tables)} tables")
        return tables

    async def get_columns(
        self, table_name: str, database_name: Optional[str] = None
    ) -> List[str]:
        """
        Describe the columns of one table in ordinal order.

        Args:
            table_name: 'schema.table' or a bare table name (dbo assumed).
            database_name: Optional database to switch to.

        Returns:
            Lines like 'Id | int | NOT NULL IDENTITY PRIMARY KEY'.
        """
        schema, table = parse_table_name(table_name)
        logger.debug(f"Getting columns for table {schema}.{table}")

        async with self.gateway.connect(database_name) as connection:
            result = await connection.execute(
                COLUMNS_SQL, {"schema": schema, "table_name": table}
            )
            columns = [describe_column(*row) for row in result.all()]

        logger.debug(f"Found {len(columns)} columns for table {table_name}")
        return columns

    async def get_relationships(self, database_name: Optional[str] = None) -> List[str]:
        logger.debug(f"Getting relationships for database {database_name or 'default'}")

        async with self.gateway.connect(database_name) as connection:
            result = await connection.execute(RELATIONSHIPS_SQL)
            relationships = [
                f"{table}.{column} -> {ref_table}.{ref_column} (FK: {foreign_key})"
                for foreign_key, table, column, ref_table, ref_column in result.all()
            ]

        logger.debug(f"Found {len(relationships)} relationships")
        return relationships

    async def get_stored_procedure_definition(
        self, sp_name: str, database_name: Optional[str] = None
    ) -> List[str]:
        logger.debug(f"Getting stored procedure definition: {sp_name}")

        async with self.gateway.connect(database_name) as connection:
            result = await connection.execute(PROCEDURE_SQL, {"sp_name": sp_name})
            procedures = [
                f"{name}:\n{definition or ''}" for name, definition in result.all()
            ]

        logger.debug(f"Found {len(procedures)} procedures matching name {sp_name}")
        return procedures
