"""Group the statements of one executed batch by category."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from dbplayground.core.statements import StatementCategory, classify_statement


@dataclass(frozen=True)
class ClassifiedBatch:
    queries: tuple[Any, ...] = ()
    seeds: tuple[Any, ...] = ()
    migrations: tuple[Any, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.queries or self.seeds or self.migrations)

    def for_category(self, category: StatementCategory) -> tuple[Any, ...]:
        if category is StatementCategory.QUERY:
            return self.queries
        if category is StatementCategory.SEED:
            return self.seeds
        return self.migrations


def group_statements(nodes: Iterable[Any]) -> ClassifiedBatch:
    """
    Partition statements by category in one pass.
    Relative order is kept inside each category; unclassified statements are dropped.
    """
    buckets: dict[StatementCategory, list[Any]] = {
        category: [] for category in StatementCategory
    }
    for node in nodes:
        category = classify_statement(node)
        if category is not None:
            buckets[category].append(node)

    return ClassifiedBatch(
        queries=tuple(buckets[StatementCategory.QUERY]),
        seeds=tuple(buckets[StatementCategory.SEED]),
        migrations=tuple(buckets[StatementCategory.MIGRATION]),
    )
