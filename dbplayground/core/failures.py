"""Stable failure categories for SQL execution outcomes."""

from __future__ import annotations

COMPILE_MARKERS = [
    "parser error",
    "syntax error",
    "binder error",
    "catalog error",
    "does not exist",
    "already exists",
    "no such table",
    "no such column",
]


def classify_execution_failure(error_text: str) -> str:
    """Map an engine or parser error message to parse_fail | compile_fail | runtime_fail."""
    lowered = (error_text or "").lower()
    if lowered.startswith("parse failure"):
        return "parse_fail"
    if any(token in lowered for token in COMPILE_MARKERS):
        return "compile_fail"
    return "runtime_fail"
