"""
sql_guard.py

Read-only SQL guard built on statement classification.
Goal: allow a batch only when every statement in it is a plain query.
"""

from dbplayground.core.statements import StatementCategory, classify_statement
from dbplayground.db.sql_parser import StatementParseError, parse_batch, statement_kind


def validate_read_only_sql(sql: str) -> tuple[bool, str]:
    """
    Returns: (is_allowed, message)
    """
    if not sql or not sql.strip():
        return False, "SQL is empty."

    try:
        statements = parse_batch(sql)
    except StatementParseError as exc:
        return False, f"Blocked: SQL could not be parsed ({exc})."

    if not statements:
        return False, "SQL is empty."

    for node in statements:
        category = classify_statement(node)
        if category is StatementCategory.QUERY:
            continue
        kind = statement_kind(node) or "unrecognized statement"
        if category is None:
            return False, f"Blocked: '{kind}' is not allowed (read-only mode)."
        return (
            False,
            f"Blocked: '{kind}' is a {category.value} statement (read-only mode).",
        )

    return True, "OK"
