"""Structured logging and metric event helpers for the playground."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

LOGGER_NAME = "dbplayground"

# Events written by the session layer.
METRIC_EVENTS = {"sql_execution", "migration_tracking_skipped", "database_lifecycle"}
LIFECYCLE_ACTIONS = ("create", "reset", "destroy")
MAX_REASON_CHARS = 300


def _build_paths() -> tuple[Path, Path]:
    log_dir = Path(os.getenv("APP_LOG_DIR", "logs"))
    app_log_path = Path(os.getenv("APP_LOG_PATH", str(log_dir / "app.log")))
    metrics_log_path = Path(
        os.getenv("APP_METRICS_LOG_PATH", str(log_dir / "metrics.jsonl"))
    )
    return app_log_path, metrics_log_path


def configure_app_logging() -> logging.Logger:
    """Configure the playground logger with console + file handlers (idempotent)."""
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    app_log_path, _ = _build_paths()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)

    log_level = os.getenv("APP_LOG_LEVEL", "INFO").upper()
    logger.setLevel(log_level)
    logger.propagate = False

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    file_handler = logging.FileHandler(app_log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.info("Logging initialized.")
    return logger


def record_metric_event(event: str, database_id: Optional[str] = None, **fields: Any) -> None:
    """
    Append one structured metric event to the metrics JSONL log and app logs.
    `database_id` is written right after the event name when given.
    """
    logger = configure_app_logging()
    if event not in METRIC_EVENTS:
        logger.debug("Recording unlisted metric event '%s'.", event)
    _, metrics_log_path = _build_paths()
    metrics_log_path.parent.mkdir(parents=True, exist_ok=True)

    payload: dict[str, Any] = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "event": event,
    }
    if database_id is not None:
        payload["database_id"] = database_id
    payload.update(fields)

    line = json.dumps(payload, ensure_ascii=True, default=str)
    try:
        with metrics_log_path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
        logger.info("metric=%s", line)
    except OSError as exc:
        logger.warning("Could not write metric event '%s': %s", event, exc)


def record_execution_event(
    database_id: str,
    success: bool,
    failure_category: str = "",
    failure_reason: str = "",
    **counts: Any,
) -> None:
    """
    One `sql_execution` event. Failure fields are only written for failed or
    untracked batches; the reason is cut to MAX_REASON_CHARS.
    """
    fields: dict[str, Any] = {"success": success, **counts}
    if failure_category:
        fields["failure_category"] = failure_category
    if failure_reason:
        fields["failure_reason"] = failure_reason[:MAX_REASON_CHARS]
    record_metric_event("sql_execution", database_id=database_id, **fields)


def record_lifecycle_event(action: str, database_id: str) -> None:
    if action not in LIFECYCLE_ACTIONS:
        raise ValueError(f"Unknown database lifecycle action: {action}")
    record_metric_event("database_lifecycle", database_id=database_id, action=action)
