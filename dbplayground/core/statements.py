"""Classification of parsed statements into queries, seeds and migrations."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from dbplayground.db.sql_parser import statement_kind, unwrap_parens, write_target


class StatementCategory(str, Enum):
    QUERY = "query"
    SEED = "seed"
    MIGRATION = "migration"


QUERY_KINDS = frozenset({"select"})

SEED_KINDS = frozenset({"insert", "update", "delete", "merge"})

DEFINED_OBJECTS = [
    "table",
    "table-as",
    "view",
    "materialized-view",
    "index",
    "sequence",
    "type",
    "domain",
    "role",
    "user",
    "group",
    "schema",
    "extension",
    "policy",
    "publication",
    "subscription",
    "trigger",
    "event-trigger",
    "function",
    "procedure",
    "routine",
    "aggregate",
    "operator",
    "operator-class",
    "operator-family",
    "rule",
    "database",
    "tablespace",
    "foreign-table",
    "foreign-data-wrapper",
    "server",
    "user-mapping",
    "cast",
    "conversion",
    "collation",
    "language",
    "statistics",
    "text-search",
    "transform",
    "access-method",
    "default-privileges",
]

UTILITY_KINDS = [
    "truncate",
    "copy",
    "comment",
    "grant",
    "revoke",
    "transaction-control",
    "variable-set",
    "variable-show",
    "discard",
    "prepare",
    "execute",
    "deallocate",
    "declare-cursor",
    "fetch",
    "close-portal",
    "notify",
    "listen",
    "unlisten",
    "vacuum",
    "explain",
    "call",
    "do",
    "return",
    "reindex",
    "cluster",
    "checkpoint",
    "lock",
    "load",
    "refresh-materialized-view",
    "security-label",
    "import-foreign-schema",
    "reassign-owned",
    "drop-owned",
    "alter-system",
]

# Anything that is neither a plain read nor a row mutation.
MIGRATION_KINDS = frozenset(
    [f"{verb}-{noun}" for verb in ("create", "alter", "drop") for noun in DEFINED_OBJECTS]
    + UTILITY_KINDS
)


def unwrap_query_statement(node: Any) -> Optional[Any]:
    # Select statements are queries unless they write into another table
    if statement_kind(node) in QUERY_KINDS and write_target(node) is None:
        return unwrap_parens(node)
    return None


def unwrap_seed_statement(node: Any) -> Optional[Any]:
    kind = statement_kind(node)
    if kind in SEED_KINDS:
        return unwrap_parens(node)
    # SELECT ... INTO writes rows, so it seeds rather than queries
    if kind in QUERY_KINDS and write_target(node) is not None:
        return unwrap_parens(node)
    return None


def unwrap_migration_statement(node: Any) -> Optional[Any]:
    if statement_kind(node) in MIGRATION_KINDS:
        return unwrap_parens(node)
    return None


def classify_statement(node: Any) -> Optional[StatementCategory]:
    """Return the category of one statement, or None when it is unclassified."""
    if unwrap_query_statement(node) is not None:
        return StatementCategory.QUERY
    if unwrap_seed_statement(node) is not None:
        return StatementCategory.SEED
    if unwrap_migration_statement(node) is not None:
        return StatementCategory.MIGRATION
    return None


def is_query_statement(node: Any) -> bool:
    return classify_statement(node) is StatementCategory.QUERY


def is_seed_statement(node: Any) -> bool:
    return classify_statement(node) is StatementCategory.SEED


def is_migration_statement(node: Any) -> bool:
    return classify_statement(node) is StatementCategory.MIGRATION
