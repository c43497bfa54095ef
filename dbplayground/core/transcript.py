"""Rebuild scripts from a stored chat transcript."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator

from dbplayground.core.grouping import group_statements
from dbplayground.core.migrations import new_migration_accumulator
from dbplayground.db.sql_parser import parse_batch

EXECUTE_SQL_TOOL = "executeSql"


def _tool_invocations(message: dict) -> list:
    invocations = message.get("toolInvocations")
    if invocations is None:
        invocations = message.get("tool_invocations")
    return invocations or []


def extract_executed_sql(messages: Iterable[dict]) -> Iterator[str]:
    """Yield SQL from executeSql calls that ran successfully, in transcript order."""
    for message in messages:
        for invocation in _tool_invocations(message):
            if invocation.get("toolName") != EXECUTE_SQL_TOOL:
                continue
            result = invocation.get("result")
            # Only SQL that actually executed against the database counts
            if not isinstance(result, dict) or result.get("success") is not True:
                continue
            sql = (invocation.get("args") or {}).get("sql")
            if isinstance(sql, str) and sql.strip():
                yield sql


def build_migration_script(
    messages: Iterable[dict],
    parse: Callable[[str], list[Any]] = parse_batch,
) -> str:
    """Replay every successful executeSql batch and return the migration script."""
    accumulator = new_migration_accumulator()
    for sql in extract_executed_sql(messages):
        batch = group_statements(parse(sql))
        accumulator.append(batch.migrations)
    return accumulator.script
