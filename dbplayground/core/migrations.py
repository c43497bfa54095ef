"""Running migration (and seed) scripts rebuilt from executed statements."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from dbplayground.db.sql_format import ensure_terminated, format_sql
from dbplayground.db.sql_parser import deparse_statement

MIGRATION_PLACEHOLDER = "-- Migrations will appear here as you chat with the assistant"
SEED_PLACEHOLDER = "-- Seeds will appear here as you chat with the assistant"


class AccumulatorState(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"


def render_script(
    statements: Sequence[str],
    header: str,
    formatter: Callable[[str], str] = format_sql,
) -> str:
    """
    Render a whole statement log as one formatted script.
    The complete log is formatted on every call; an empty log renders as the header.
    """
    if not statements:
        return header

    joined = "\n\n".join(ensure_terminated(sql) for sql in statements)
    return ensure_terminated(formatter(joined).strip())


class ScriptAccumulator:
    """
    Append-only statement log for one session plus its formatted script.

    `on_append` receives the newly deparsed statements before they are committed;
    if it (or the deparser, or the formatter) raises, nothing changes.
    """

    def __init__(
        self,
        header: str,
        statements: Iterable[str] = (),
        on_append: Optional[Callable[[list[str]], None]] = None,
        formatter: Callable[[str], str] = format_sql,
        deparser: Callable[[Any], str] = deparse_statement,
    ) -> None:
        self.header = header
        self.on_append = on_append
        self._formatter = formatter
        self._deparser = deparser
        self._statements: tuple[str, ...] = tuple(statements)
        self._script = render_script(self._statements, header, formatter)

    @property
    def statements(self) -> tuple[str, ...]:
        return self._statements

    @property
    def script(self) -> str:
        return self._script

    @property
    def state(self) -> AccumulatorState:
        if self._statements:
            return AccumulatorState.POPULATED
        return AccumulatorState.EMPTY

    def append(self, nodes: Iterable[Any]) -> str:
        """Append parsed statements in execution order and return the new script."""
        new_statements = [self._deparser(node) for node in nodes]
        if not new_statements:
            return self._script

        combined = self._statements + tuple(new_statements)
        script = render_script(combined, self.header, self._formatter)
        if self.on_append is not None:
            self.on_append(new_statements)

        self._statements = combined
        self._script = script
        return script

    def reset(self) -> None:
        self._statements = ()
        self._script = self.header


def new_migration_accumulator(statements: Iterable[str] = (), **kwargs: Any) -> ScriptAccumulator:
    return ScriptAccumulator(MIGRATION_PLACEHOLDER, statements, **kwargs)


def new_seed_accumulator(statements: Iterable[str] = (), **kwargs: Any) -> ScriptAccumulator:
    return ScriptAccumulator(SEED_PLACEHOLDER, statements, **kwargs)


def append_migrations(accumulator: ScriptAccumulator, nodes: Iterable[Any]) -> str:
    """Append migration statements to a session's accumulator; returns the formatted script."""
    return accumulator.append(nodes)
