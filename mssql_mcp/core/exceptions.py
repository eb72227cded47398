"""
Exceptions raised below the query executor.
The executor is the only place that turns them into text for the caller.
"""


class ReadOnlyServerError(Exception):
    """Base exception for all server errors."""


class DatabaseConnectionError(ReadOnlyServerError):
    """Connection could not be opened or the database switch failed."""


class QueryExecutionError(ReadOnlyServerError):
    """The database rejected or failed the statement."""


class FormattingError(ReadOnlyServerError):
    """Result set is malformed. Always a programming defect."""


class UnknownToolError(ReadOnlyServerError):
    """Tool not found in registry. Message contains 'unknown tool'."""

    def __init__(self, tool_name: str):
        super().__init__(f"unknown tool: {tool_name!r}")
        self.tool_name = tool_name
