"""DuckDB meta database: the list of playground databases and their statement logs."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

import duckdb

from dbplayground.core.statements import StatementCategory

TRACKED_CATEGORIES = (StatementCategory.MIGRATION, StatementCategory.SEED)


@dataclass(frozen=True)
class MetaMigration:
    version: str
    name: str
    sql: str


META_MIGRATIONS = sorted(
    [
        MetaMigration(
            version="202406300001",
            name="databases",
            sql="""
            create table databases (
              id text primary key,
              created_at timestamp not null default current_timestamp,
              name text
            );
            """,
        ),
        MetaMigration(
            version="202406300002",
            name="statement_log",
            sql="""
            create table statement_log (
              database_id text not null,
              category text not null check (category in ('migration', 'seed')),
              ordinal integer not null,
              sql text not null,
              primary key (database_id, category, ordinal)
            );
            """,
        ),
    ],
    key=lambda migration: migration.version,
)


def run_meta_migrations(
    con: duckdb.DuckDBPyConnection, migrations: Sequence[MetaMigration]
) -> list[str]:
    """
    Apply pending migrations in version order inside one transaction.
    Returns the versions applied by this call.
    """
    con.execute("create schema if not exists _meta")
    con.execute(
        """
        create table if not exists _meta.migrations (
          version text primary key,
          name text,
          applied_at timestamp not null default current_timestamp
        )
        """
    )
    applied = [
        row[0]
        for row in con.execute(
            "select version from _meta.migrations order by version asc"
        ).fetchall()
    ]

    newly_applied: list[str] = []
    con.begin()
    try:
        for index, migration in enumerate(migrations):
            if index < len(applied):
                if migration.version == applied[index]:
                    continue
                raise RuntimeError(
                    "A previously applied migration was removed or a new migration "
                    "was added with a version less than the latest."
                )
            con.execute(
                "insert into _meta.migrations (version, name) values (?, ?)",
                [migration.version, migration.name],
            )
            con.execute(migration.sql)
            newly_applied.append(migration.version)
        con.commit()
    except Exception:
        con.rollback()
        raise
    return newly_applied


def generate_database_id() -> str:
    return secrets.token_hex(8)


@dataclass(frozen=True)
class DatabaseRecord:
    id: str
    name: Optional[str]
    created_at: datetime


class MetaStore:
    """Persistence for databases and their per-category statement logs."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._con = duckdb.connect(str(self.path))
        run_meta_migrations(self._con, META_MIGRATIONS)

    def close(self) -> None:
        self._con.close()

    def create_database(self, name: Optional[str] = None) -> DatabaseRecord:
        row = self._con.execute(
            """
            insert into databases (id, name)
            values (?, ?)
            returning id, name, created_at
            """,
            [generate_database_id(), name],
        ).fetchone()
        return DatabaseRecord(*row)

    def get_database(self, database_id: str) -> Optional[DatabaseRecord]:
        row = self._con.execute(
            "select id, name, created_at from databases where id = ?",
            [database_id],
        ).fetchone()
        return DatabaseRecord(*row) if row else None

    def list_databases(self) -> list[DatabaseRecord]:
        rows = self._con.execute(
            "select id, name, created_at from databases order by created_at, id"
        ).fetchall()
        return [DatabaseRecord(*row) for row in rows]

    def delete_database(self, database_id: str) -> None:
        self.clear_statements(database_id)
        self._con.execute("delete from databases where id = ?", [database_id])

    def append_statements(
        self,
        database_id: str,
        category: StatementCategory,
        statements: Sequence[str],
    ) -> None:
        """Append statements to a log; ordinals continue from the last stored one."""
        if category not in TRACKED_CATEGORIES:
            raise ValueError(f"Statements of category '{category.value}' are not logged.")
        if not statements:
            return

        self._con.begin()
        try:
            (last_ordinal,) = self._con.execute(
                """
                select coalesce(max(ordinal), 0)
                from statement_log
                where database_id = ? and category = ?
                """,
                [database_id, category.value],
            ).fetchone()
            for offset, sql in enumerate(statements, start=1):
                self._con.execute(
                    """
                    insert into statement_log (database_id, category, ordinal, sql)
                    values (?, ?, ?, ?)
                    """,
                    [database_id, category.value, last_ordinal + offset, sql],
                )
            self._con.commit()
        except Exception:
            self._con.rollback()
            raise

    def load_statements(self, database_id: str, category: StatementCategory) -> list[str]:
        rows = self._con.execute(
            """
            select sql
            from statement_log
            where database_id = ? and category = ?
            order by ordinal
            """,
            [database_id, category.value],
        ).fetchall()
        return [sql for (sql,) in rows]

    def clear_statements(self, database_id: str) -> None:
        self._con.execute("delete from statement_log where database_id = ?", [database_id])
