"""
ToolRegistry - the fixed set of callable tools.
Built once at startup from explicit entries; lookup is exact-match and
case-sensitive, aliases resolve to the canonical definition.
Unknown tool = hard error.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from mssql_mcp.core import schemas
from mssql_mcp.core.catalog import SchemaRepository
from mssql_mcp.core.database import ConnectionGateway, get_gateway
from mssql_mcp.core.exceptions import UnknownToolError
from mssql_mcp.core.executor import SafeQueryExecutor
from mssql_mcp.tools.schema_tools import SchemaTools


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    args_model: Type[BaseModel]
    handler: Callable[..., Awaitable[str]]
    aliases: Tuple[str, ...] = ()

    def descriptor(self) -> schemas.ToolDescriptor:
        return schemas.ToolDescriptor(
            name=self.name,
            description=self.description,
            aliases=list(self.aliases),
            parameters=self.args_model.model_json_schema(),
        )


class ToolRegistry:
    """
    Immutable after build() is called.
    Safe for concurrent reads (no mutation post-build).
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}
        self._aliases: Dict[str, str] = {}
        self._locked = False

    def register(self, tool: ToolDefinition) -> None:
        """Register a tool. Raises if the registry is locked or a name conflicts."""
        if self._locked:
            raise RuntimeError("ToolRegistry is locked, cannot register after build()")
        if tool.name in self._tools or tool.name in self._aliases:
            raise ValueError(f"Tool already registered: {tool.name!r}")
        for alias in tool.aliases:
            if alias in self._aliases or alias in self._tools or alias == tool.name:
                raise ValueError(f"Alias conflict: {alias!r}")
        self._tools[tool.name] = tool
        for alias in tool.aliases:
            self._aliases[alias] = tool.name

    def build(self) -> "ToolRegistry":
        """Lock the registry. Call once at startup after all tools are registered."""
        self._locked = True
        return self

    @property
    def locked(self) -> bool:
        return self._locked

    def lookup(self, name: str) -> ToolDefinition:
        """Exact-match lookup, aliases allowed. Raises UnknownToolError."""
        canonical = self._aliases.get(name, name)
        tool = self._tools.get(canonical)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def exists(self, name: str) -> bool:
        return self._aliases.get(name, name) in self._tools

    def all_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    async def invoke(self, name: str, params: Optional[Dict[str, Any]] = None) -> str:
        """
        Validate params against the tool's args model and call its handler.

        Raises:
            UnknownToolError: no tool or alias with that name.
            pydantic.ValidationError: params do not match the args model.
        """
        tool = self.lookup(name)
        args = tool.args_model.model_validate(params or {})
        return await tool.handler(**args.model_dump())


def build_tool_registry(tools: SchemaTools) -> ToolRegistry:
    """Register every tool explicitly and lock the registry."""
    registry = ToolRegistry()

    registry.register(
        ToolDefinition(
            name="get_tables",
            description=(
                "Get tables name of database. Optionally, specify a database name "
                "to query a different database in the same instance."
            ),
            args_model=schemas.DatabaseArgs,
            handler=tools.get_tables,
            aliases=("GetTables",),
        )
    )
    registry.register(
        ToolDefinition(
            name="get_columns",
            description=(
                "Get the columns (fields) of a database table. Optionally, specify a "
                "database name to query a different database in the same instance."
            ),
            args_model=schemas.ColumnsArgs,
            handler=tools.get_columns,
            aliases=("GetColumns",),
        )
    )
    registry.register(
        ToolDefinition(
            name="get_relationships",
            description=(
                "Get the relationships between tables in the database. Optionally, "
                "specify a database name to query a different database in the same instance."
            ),
            args_model=schemas.DatabaseArgs,
            handler=tools.get_relationships,
            aliases=("GetRelationships",),
        )
    )
    registry.register(
        ToolDefinition(
            name="execute_sql",
            description=(
                "Execute a read-only SQL query (SELECT only). INSERT, UPDATE, DELETE "
                "and other modifying statements are blocked for security. Optionally, "
                "specify a database name to query a different database in the same instance."
            ),
            args_model=schemas.ExecuteSqlArgs,
            handler=tools.execute_sql,
            aliases=("ExecuteSql",),
        )
    )
    registry.register(
        ToolDefinition(
            name="get_stored_procedure",
            description=(
                "Get the definition of a stored procedure by name. Optionally, specify "
                "a database name to query a different database in the same instance."
            ),
            args_model=schemas.StoredProcedureArgs,
            handler=tools.get_stored_procedure,
            aliases=("GetStoreProcedure",),
        )
    )

    return registry.build()


def create_tool_registry(gateway: ConnectionGateway) -> ToolRegistry:
    tools = SchemaTools(SchemaRepository(gateway), SafeQueryExecutor(gateway))
    return build_tool_registry(tools)


@lru_cache
def get_tool_registry() -> ToolRegistry:
    """Process-wide registry on the default gateway."""
    return create_tool_registry(get_gateway())
