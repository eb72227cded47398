"""
classifier.py - read-only gate for caller SQL.

Decides whether a raw query may reach the database. Runs before any
connection is opened and never touches one, so database state cannot
influence the verdict.
"""

import re
from typing import List, Optional

from mssql_mcp.core.schemas import Verdict


# -----------------------------------------------------------------------------
# RULES
# A conservative deny-list rather than a SQL grammar: identifiers that equal a
# blocked keyword as a whole word (a table literally named DROP) are rejected.
# -----------------------------------------------------------------------------

ALLOWED_PREFIXES = ("SELECT", "WITH", "SET", "--", "/*")

# Checked in this order, the first match names the rejection
BLOCKED_KEYWORDS = (
    # DML
    "INSERT",
    "UPDATE",
    "DELETE",
    "MERGE",
    "TRUNCATE",
    # DDL
    "DROP",
    "ALTER",
    "CREATE",
    # DCL
    "GRANT",
    "REVOKE",
    "DENY",
    # Execution
    "EXEC",
    "EXECUTE",
    "SP_EXECUTESQL",
    # Bulk access
    "BULK",
    "OPENROWSET",
    "OPENDATASOURCE",
    # Backup / restore
    "BACKUP",
    "RESTORE",
    # Server control
    "SHUTDOWN",
    "KILL",
    "RECONFIGURE",
    "DBCC",
)

EMPTY_QUERY_REASON = "SQL query cannot be empty."
READ_ONLY_REASON = (
    "Error: only read operations are allowed; queries must start with SELECT or WITH."
)
MULTIPLE_STATEMENTS_REASON = (
    "Error: multiple statements are not allowed. "
    "Please execute one SELECT query at a time."
)

_KEYWORD_PATTERNS = [
    (keyword, re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE))
    for keyword in BLOCKED_KEYWORDS
]

_KEYWORD_ALTERNATION = "|".join(re.escape(keyword) for keyword in BLOCKED_KEYWORDS)

# Statement that opens with a blocked verb
_LEADING_BLOCKED_VERB = re.compile(rf"(?:{_KEYWORD_ALTERNATION})\b", re.IGNORECASE)

# ';' then optional comments / line breaks, then a blocked verb
_CHAINED_BLOCKED_VERB = re.compile(
    rf";\s*(?:--[^\r\n]*\r?\n\s*|/\*.*?\*/\s*)*(?:{_KEYWORD_ALTERNATION})\b",
    re.IGNORECASE | re.DOTALL,
)


def keyword_reason(keyword: str) -> str:
    return f"Error: {keyword} statements are not allowed. This is a read-only server."


def validate(raw: Optional[str]) -> Verdict:
    """
    Classify a raw query as read-only or not.
    Rules run in order and the first failure wins.

    Semicolons split statements with no awareness of literals, and the
    empty piece after a trailing ';' counts as a statement, so
    "SELECT * FROM Users;" is rejected. Send queries without the final ';'.

    Args:
        raw: Query text exactly as the caller sent it.

    Returns:
        Verdict with valid=True, or valid=False and the violated rule as reason.

    Example:
        validate("SELECT * FROM Users").valid  # True
        validate("DROP TABLE Users").reason    # names DROP
    """
    if raw is None or not raw.strip():
        return Verdict.reject(EMPTY_QUERY_REASON)

    query = raw.strip()

    if not has_read_only_start(query):
        return Verdict.reject(READ_ONLY_REASON)

    keyword = find_blocked_keyword(query)
    if keyword is not None:
        return Verdict.reject(keyword_reason(keyword))

    if ";" in query and has_multiple_statements(query):
        return Verdict.reject(MULTIPLE_STATEMENTS_REASON)

    return Verdict.ok()


def has_read_only_start(query: str) -> bool:
    """True when the trimmed query opens with an allowed prefix (any case)."""
    upper = query.upper()
    return any(upper.startswith(prefix) for prefix in ALLOWED_PREFIXES)


def find_blocked_keyword(query: str) -> Optional[str]:
    """Return the first deny-listed keyword present as a whole word, else None."""
    for keyword, pattern in _KEYWORD_PATTERNS:
        if pattern.search(query):
            return keyword
    return None


def split_statements(query: str) -> List[str]:
    # Plain split: semicolons inside string literals or quoted identifiers
    # are treated as separators too
    return query.split(";")


def has_multiple_statements(query: str) -> bool:
    """
    Detect a second statement chained after ';'.

    Every statement after the first non-blank one is rejected when it is
    empty, a comment, or opens with a blocked verb. A ';' followed by a
    blocked verb, with comments and line breaks in between, is rejected too.
    """
    statements = split_statements(query)

    first = 0
    while first < len(statements) and not statements[first].strip():
        first += 1

    for statement in statements[first + 1 :]:
        stripped = statement.strip()
        if not stripped:
            return True
        if stripped.startswith(("--", "/*")):
            return True
        if _LEADING_BLOCKED_VERB.match(stripped):
            return True

    return bool(_CHAINED_BLOCKED_VERB.search(query))
