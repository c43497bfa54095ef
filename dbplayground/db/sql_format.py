"""Canonical formatting of accumulated SQL scripts (sqlparse)."""

from __future__ import annotations

import sqlparse
from sqlparse.exceptions import SQLParseError

# Layout comes from the deparser; formatting only normalizes case.
FORMAT_OPTIONS = {
    "keyword_case": "lower",
    "identifier_case": "lower",
}


class SqlFormatError(ValueError):
    """Raised when SQL text cannot be run through the formatter."""


def ensure_terminated(sql: str) -> str:
    """Return `sql` ending with exactly one statement terminator."""
    text = sql.rstrip()
    if not text:
        return text
    return text if text.endswith(";") else f"{text};"


def format_sql(sql: str) -> str:
    """Format SQL text with the fixed playground style."""
    try:
        formatted = sqlparse.format(sql, **FORMAT_OPTIONS)
    except SQLParseError as exc:
        raise SqlFormatError(str(exc)) from exc
    return ensure_terminated(formatted.strip())
