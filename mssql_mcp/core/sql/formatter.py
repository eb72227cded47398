"""
formatter.py - renders a ResultSet as plain text.

Output depends only on the result content: no clock, no locale, no sorting
and no de-duplication of rows.
"""

from typing import Any, List

from mssql_mcp.core.exceptions import FormattingError
from mssql_mcp.core.schemas import ResultSet


NO_ROWS_MESSAGE = "No rows returned from the query."
NULL_TEXT = "NULL"
SEPARATOR = "\t|\t"

# Dash rule width: 20 per column, capped
RULE_WIDTH_PER_COLUMN = 20
MAX_RULE_WIDTH = 120


def format_value(value: Any) -> str:
    """
    Canonical text for a single cell.

    Binary values are shown as upper-case hex with a 0x prefix; everything
    else uses str(), which is locale independent for numbers and dates.
    """
    if value is None:
        return NULL_TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex().upper()
    return str(value)


def rule_width(column_count: int) -> int:
    return min(column_count * RULE_WIDTH_PER_COLUMN, MAX_RULE_WIDTH)


def render(rs: ResultSet) -> str:
    """
    Render a result set.

    Zero rows gives the no-rows sentence. Otherwise: the header line, a dash
    rule, then one line per row in the order received. Every line ends with
    a line break.

    Raises:
        FormattingError: a row is not aligned with the columns.
    """
    if not rs.rows:
        return NO_ROWS_MESSAGE + "\n"

    width = len(rs.columns)
    lines: List[str] = [SEPARATOR.join(rs.columns), "-" * rule_width(width)]

    for index, row in enumerate(rs.rows):
        if len(row) != width:
            raise FormattingError(
                f"row {index} has {len(row)} values but the result has {width} columns"
            )
        lines.append(SEPARATOR.join(format_value(value) for value in row))

    return "\n".join(lines) + "\n"
