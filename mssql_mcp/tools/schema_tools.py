"""
Tool handlers exposed to MCP clients and the HTTP invoke endpoint.
Each handler returns text ready to hand back to the caller.
"""

from typing import Optional

from mssql_mcp.core.catalog import SchemaRepository
from mssql_mcp.core.executor import SafeQueryExecutor

TABLE_KEYWORDS = ("table", "tabla")

# Punctuation stripped from both ends of an extracted table name
TABLE_NAME_PUNCTUATION = ",.:;?!\"'[]"

MISSING_TABLE_MESSAGE = "Please specify the table name to query its fields."
MISSING_PROCEDURE_MESSAGE = "Stored procedure name cannot be empty."


def format_database_info(database_name: Optional[str]) -> str:
    if database_name is None or not database_name.strip():
        return ""
    return f" (database '{database_name}')"


def clean_table_name(name: str) -> str:
    return name.strip(TABLE_NAME_PUNCTUATION)


def extract_table_name(raw: str) -> str:
    """
    Pull a table name out of loose input such as "table Users" or
    "tabla Customers". Without a keyword the first word is used.
    """
    words = raw.split()
    for index, word in enumerate(words):
        if word.lower() in TABLE_KEYWORDS and index + 1 < len(words):
            return clean_table_name(words[index + 1])
    return clean_table_name(words[0]) if words else ""


class SchemaTools:
    """Stateless; safe to share across concurrent calls."""

    def __init__(self, repository: SchemaRepository, executor: SafeQueryExecutor):
        self.repository = repository
        self.executor = executor

    async def get_tables(self, database_name: Optional[str] = None) -> str:
        tables = await self.repository.get_tables(database_name)
        db_info = format_database_info(database_name)
        return f"Tables{db_info}:\n\n" + "\n".join(tables)

    async def get_columns(
        self, table_name: str, database_name: Optional[str] = None
    ) -> str:
        if table_name is None or not table_name.strip():
            return MISSING_TABLE_MESSAGE

        clean_name = extract_table_name(table_name)
        if not clean_name:
            return MISSING_TABLE_MESSAGE

        columns = await self.repository.get_columns(clean_name, database_name)
        db_info = format_database_info(database_name)

        if not columns:
            return (
                f"No columns found for table '{clean_name}'{db_info}. "
                "Verify the table name is correct."
            )
        return f"Columns in the table {clean_name}{db_info}:\n\n" + "\n".join(columns)

    async def get_relationships(self, database_name: Optional[str] = None) -> str:
        relationships = await self.repository.get_relationships(database_name)
        db_info = format_database_info(database_name)

        if not relationships:
            return f"No foreign key relationships found{db_info}."
        return f"Relationships between tables{db_info}:\n\n" + "\n".join(relationships)

    async def execute_sql(
        self, sql_query: str, database_name: Optional[str] = None
    ) -> str:
        return await self.executor.execute_read_only_query(sql_query, database_name)

    async def get_stored_procedure(
        self, sp_name: str, database_name: Optional[str] = None
    ) -> str:
        if sp_name is None or not sp_name.strip():
            return MISSING_PROCEDURE_MESSAGE

        procedures = await self.repository.get_stored_procedure_definition(
            sp_name, database_name
        )
        db_info = format_database_info(database_name)

        if not procedures:
            return f"Stored procedure '{sp_name}' not found{db_info}."
        return f"Stored procedure '{sp_name}'{db_info}:\n\n" + "\n\n".join(procedures)
