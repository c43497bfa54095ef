"""Summarize playground metrics JSONL into execution and tracking aggregates."""

from __future__ import annotations

import argparse
import json
import statistics
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dbplayground.core.failures import classify_execution_failure

STATEMENT_COUNT_FIELDS = ("queries", "seeds", "migrations")


def load_metric_events(metrics_path: Path) -> list[dict]:
    """Read JSONL metrics log and return parsed events."""
    if not metrics_path.exists():
        return []

    events: list[dict] = []
    for line in metrics_path.read_text(encoding="utf-8", errors="replace").splitlines():
        text = line.strip()
        if not text:
            continue
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            events.append(payload)
    return events


def _safe_percent(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round((numerator / denominator) * 100.0, 2)


def _median(values: list[float]) -> float:
    if not values:
        return 0.0
    return round(float(statistics.median(values)), 2)


def summarize_metric_events(events: list[dict]) -> dict:
    """Build summary structure for SQL execution, statement tracking and lifecycle."""
    execution_events = [e for e in events if e.get("event") == "sql_execution"]
    skipped_events = [e for e in events if e.get("event") == "migration_tracking_skipped"]
    lifecycle_events = [e for e in events if e.get("event") == "database_lifecycle"]

    execution_success = sum(1 for e in execution_events if bool(e.get("success")))
    execution_failed = len(execution_events) - execution_success
    execution_durations = [
        float(e.get("execution_ms", 0))
        for e in execution_events
        if isinstance(e.get("execution_ms"), (int, float)) and float(e.get("execution_ms", 0)) > 0
    ]

    failure_breakdown: dict[str, int] = {}
    for event in execution_events:
        if bool(event.get("success")):
            continue
        category = str(event.get("failure_category") or "").strip()
        if not category:
            category = classify_execution_failure(str(event.get("failure_reason", "")))
        failure_breakdown[category] = failure_breakdown.get(category, 0) + 1

    statement_counts = {name: 0 for name in STATEMENT_COUNT_FIELDS}
    for event in execution_events:
        for name in STATEMENT_COUNT_FIELDS:
            value = event.get(name)
            if isinstance(value, int):
                statement_counts[name] += value

    lifecycle_counts: dict[str, int] = {}
    for event in lifecycle_events:
        action = str(event.get("action") or "unknown")
        lifecycle_counts[action] = lifecycle_counts.get(action, 0) + 1

    return {
        "totals": {
            "events": len(events),
            "execution_events": len(execution_events),
            "tracking_skipped_events": len(skipped_events),
            "lifecycle_events": len(lifecycle_events),
        },
        "execution": {
            "success": execution_success,
            "failed": execution_failed,
            "success_rate": _safe_percent(execution_success, len(execution_events)),
            "fail_rate": _safe_percent(execution_failed, len(execution_events)),
            "median_execution_ms": _median(execution_durations),
            "failure_breakdown": failure_breakdown,
        },
        "statements": {
            **statement_counts,
            "tracking_skipped_rate": _safe_percent(len(skipped_events), execution_success),
        },
        "lifecycle": lifecycle_counts,
    }


def write_summary(summary: dict, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(summary, indent=2, ensure_ascii=True), encoding="utf-8")


def main() -> None:
    parser = argparse.ArgumentParser(description="Summarize metrics JSONL into a JSON report.")
    parser.add_argument(
        "--metrics-path",
        default="logs/metrics.jsonl",
        help="Path to metrics JSONL file.",
    )
    parser.add_argument(
        "--output",
        default="reports/metrics_summary.json",
        help="Output JSON path.",
    )
    args = parser.parse_args()

    metrics_path = Path(args.metrics_path)
    events = load_metric_events(metrics_path)
    summary = summarize_metric_events(events)
    output_path = Path(args.output)
    write_summary(summary, output_path)

    print(f"Loaded events: {summary['totals']['events']}")
    print(f"Execution fail rate: {summary['execution']['fail_rate']}%")
    print(f"Migrations recorded: {summary['statements']['migrations']}")
    print(f"Metrics summary: {output_path}")


if __name__ == "__main__":
    main()
