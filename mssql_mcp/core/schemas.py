from typing import Optional, List, Dict, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# =========================
# VALIDATION
# =========================
class Verdict(BaseModel):
    """
    Outcome of classifying one query.
    reason is set only when valid is False and names the rule that failed.
    """

    valid: bool
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def ok(cls) -> "Verdict":
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: str) -> "Verdict":
        return cls(valid=False, reason=reason)


# =========================
# RESULTS
# =========================
class ResultSet(BaseModel):
    """
    Tabular query result.
    Column order is the database column order; duplicate labels are allowed.
    Each row is aligned with columns by position, None stands for NULL.
    """

    columns: List[str] = []
    rows: List[List[Any]] = []

    model_config = ConfigDict(frozen=True)

    @classmethod
    def empty(cls) -> "ResultSet":
        return cls(columns=[], rows=[])


# =========================
# TOOL ARGUMENTS
# camelCase names (databaseName, sqlQuery, ...) are accepted too, as older
# HTTP clients send them
# =========================
class DatabaseArgs(BaseModel):
    database_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("database_name", "databaseName"),
        description="Optional database in the same instance to query instead of the default one.",
    )

    model_config = ConfigDict(extra="forbid")


class ColumnsArgs(DatabaseArgs):
    table_name: str = Field(
        validation_alias=AliasChoices("table_name", "tableName"),
        description="Table name, optionally prefixed with its schema.",
    )


class ExecuteSqlArgs(DatabaseArgs):
    sql_query: str = Field(
        validation_alias=AliasChoices("sql_query", "sqlQuery"),
        description="Read-only SQL query (SELECT or WITH).",
    )


class StoredProcedureArgs(DatabaseArgs):
    sp_name: str = Field(
        validation_alias=AliasChoices("sp_name", "spName"),
        description="Name of the stored procedure.",
    )


# =========================
# HTTP TOOL ENDPOINTS
# =========================
class ToolInvokeRequest(BaseModel):
    tool: str = Field(min_length=1)
    params: Optional[Dict[str, Any]] = None


class ToolDescriptor(BaseModel):
    name: str
    description: str
    aliases: List[str] = []
    parameters: Optional[Dict[str, Any]] = None


class ToolInvokeResponse(BaseModel):
    tool: str
    result: str
