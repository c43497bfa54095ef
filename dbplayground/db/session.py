"""Playground sessions: an embedded DuckDB database plus its migration history."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import duckdb
import pandas as pd

from dbplayground.config import PlaygroundConfig
from dbplayground.core.failures import classify_execution_failure
from dbplayground.core.grouping import ClassifiedBatch, group_statements
from dbplayground.core.migrations import (
    ScriptAccumulator,
    new_migration_accumulator,
    new_seed_accumulator,
)
from dbplayground.core.statements import StatementCategory, is_query_statement
from dbplayground.db.meta_store import DatabaseRecord, MetaStore
from dbplayground.db.sql_parser import (
    StatementParseError,
    parse_batch,
    statement_kind,
    to_engine_statements,
)
from dbplayground.utils.telemetry import (
    MAX_REASON_CHARS,
    configure_app_logging,
    record_execution_event,
    record_lifecycle_event,
    record_metric_event,
)

logger = logging.getLogger("dbplayground.session")


@dataclass
class ExecutionOutcome:
    success: bool
    error: str = ""
    failure_category: str = ""
    frame: Optional[pd.DataFrame] = None
    batch: Optional[ClassifiedBatch] = None
    migration_script: str = ""
    tracking_skipped: bool = False
    parse_error: str = ""
    elapsed_ms: float = 0.0

    def to_tool_result(self) -> dict[str, Any]:
        """Result payload in the shape of an executeSql tool invocation."""
        if not self.success:
            return {"success": False, "error": self.error}
        result: dict[str, Any] = {"success": True}
        if self.frame is not None:
            result["queryResults"] = self.frame.to_dict(orient="records")
        return result


class PlaygroundSession:
    """
    One open playground database.

    Batches must be executed one at a time in the order the caller wants them
    recorded; the session does no locking of its own.
    """

    def __init__(
        self,
        record: DatabaseRecord,
        connection: duckdb.DuckDBPyConnection,
        store: MetaStore,
    ) -> None:
        self.record = record
        self._connection = connection
        self._store = store
        self.migrations = self._load_accumulator(StatementCategory.MIGRATION)
        self.seeds = self._load_accumulator(StatementCategory.SEED)

    @property
    def database_id(self) -> str:
        return self.record.id

    @property
    def migration_script(self) -> str:
        return self.migrations.script

    @property
    def seed_script(self) -> str:
        return self.seeds.script

    def _load_accumulator(self, category: StatementCategory) -> ScriptAccumulator:
        def persist(statements: list[str]) -> None:
            self._store.append_statements(self.database_id, category, statements)

        factory = (
            new_migration_accumulator
            if category is StatementCategory.MIGRATION
            else new_seed_accumulator
        )
        return factory(
            self._store.load_statements(self.database_id, category),
            on_append=persist,
        )

    def _run(self, sql: str, statements: Optional[list]) -> Optional[pd.DataFrame]:
        if statements is None:
            self._connection.execute(sql)
            return None

        # Batches that manage their own transaction run as written.
        wrap = not any(statement_kind(node) == "transaction-control" for node in statements)
        if wrap:
            self._connection.begin()
        try:
            frame = None
            for index, node in enumerate(statements):
                for engine_sql in to_engine_statements(node):
                    cursor = self._connection.execute(engine_sql)
                if index == len(statements) - 1 and is_query_statement(node):
                    frame = cursor.df()
            if wrap:
                self._connection.commit()
        except duckdb.Error:
            if wrap:
                self._connection.rollback()
            raise
        return frame

    def execute_sql(self, sql: str) -> ExecutionOutcome:
        """
        Execute one SQL batch and record its migrations and seeds.
        Engine errors come back as a failed outcome; formatter errors propagate.
        """
        parse_error = ""
        try:
            statements: Optional[list] = parse_batch(sql)
        except StatementParseError as exc:
            statements = None
            parse_error = str(exc)

        start = time.time()
        try:
            frame = self._run(sql, statements)
        except duckdb.Error as exc:
            error = str(exc)
            category = classify_execution_failure(error)
            logger.warning("SQL execution failed on %s (%s): %s", self.database_id, category, error)
            record_execution_event(
                self.database_id,
                success=False,
                failure_category=category,
                failure_reason=error,
            )
            return ExecutionOutcome(
                success=False,
                error=error,
                failure_category=category,
                migration_script=self.migration_script,
                parse_error=parse_error,
            )
        elapsed_ms = round((time.time() - start) * 1000, 2)

        if statements is None:
            logger.warning(
                "Migration tracking skipped on %s, batch could not be parsed: %s",
                self.database_id,
                parse_error,
            )
            record_metric_event(
                "migration_tracking_skipped",
                database_id=self.database_id,
                failure_category="parse_fail",
                failure_reason=f"Parse failure: {parse_error[:MAX_REASON_CHARS]}",
            )
            record_execution_event(
                self.database_id,
                success=True,
                execution_ms=elapsed_ms,
                tracking_skipped=True,
            )
            return ExecutionOutcome(
                success=True,
                migration_script=self.migration_script,
                tracking_skipped=True,
                parse_error=parse_error,
                elapsed_ms=elapsed_ms,
            )

        batch = group_statements(statements)
        self.migrations.append(batch.migrations)
        self.seeds.append(batch.seeds)

        record_execution_event(
            self.database_id,
            success=True,
            execution_ms=elapsed_ms,
            statements=len(statements),
            queries=len(batch.queries),
            seeds=len(batch.seeds),
            migrations=len(batch.migrations),
        )
        return ExecutionOutcome(
            success=True,
            frame=frame,
            batch=batch,
            migration_script=self.migration_script,
            elapsed_ms=elapsed_ms,
        )

    def close(self) -> None:
        self._connection.close()


class PlaygroundWorkspace:
    """Creates, opens, resets and destroys playground databases."""

    def __init__(self, config: Optional[PlaygroundConfig] = None) -> None:
        configure_app_logging()
        self.config = config or PlaygroundConfig.from_env()
        self.config.data_dir.mkdir(parents=True, exist_ok=True)
        self.store = MetaStore(self.config.meta_db_path)
        self._sessions: dict[str, PlaygroundSession] = {}

    def create_database(self, name: Optional[str] = None) -> DatabaseRecord:
        record = self.store.create_database(name)
        record_lifecycle_event("create", record.id)
        return record

    def list_databases(self) -> list[DatabaseRecord]:
        return self.store.list_databases()

    def use(self, database_id: str) -> PlaygroundSession:
        """Open (or return the already open) session for a database."""
        session = self._sessions.get(database_id)
        if session is not None:
            return session

        record = self.store.get_database(database_id)
        if record is None:
            raise KeyError(f"Database with ID '{database_id}' doesn't exist")

        connection = duckdb.connect(str(self.config.database_path(database_id)))
        session = PlaygroundSession(record, connection, self.store)
        self._sessions[database_id] = session
        logger.info("Opened database %s", database_id)
        return session

    def _close_session(self, database_id: str) -> None:
        session = self._sessions.pop(database_id, None)
        if session is not None:
            session.close()

    def reset(self, database_id: str) -> None:
        """Drop the database contents and its recorded migration history."""
        if self.store.get_database(database_id) is None:
            raise KeyError(f"Database with ID '{database_id}' doesn't exist")

        self._close_session(database_id)
        db_path = self.config.database_path(database_id)
        for path in (db_path, db_path.with_name(db_path.name + ".wal")):
            path.unlink(missing_ok=True)
        self.store.clear_statements(database_id)
        record_lifecycle_event("reset", database_id)

    def destroy(self, database_id: str) -> None:
        self.reset(database_id)
        self.store.delete_database(database_id)
        record_lifecycle_event("destroy", database_id)

    def close(self) -> None:
        for database_id in list(self._sessions):
            self._close_session(database_id)
        self.store.close()
