"""Bounded summaries and plain-text rendering of the execution trace."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import ExecutionLogEntry

DEFAULT_SUMMARY_LENGTH = 500


def summarize(value: Any, max_len: int = DEFAULT_SUMMARY_LENGTH) -> str | None:
    """Render a value as bounded text for logs and trace entries."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value
    else:
        try:
            text = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            text = str(value)
    if len(text) <= max_len:
        return text
    return text[:max_len] + "…"


def format_entry(entry: ExecutionLogEntry, include_inputs: bool = False) -> str:
    """Format a single log entry as one trace line."""
    status = entry.status.value if entry.status else "?"
    parts = [f"- [{status}] {entry.node_id} ({entry.duration_ms or 0}ms)"]
    if entry.output_summary:
        parts.append(f'out="{entry.output_summary}"')
    if entry.error_summary:
        parts.append(f'err="{entry.error_summary}"')
    if include_inputs and entry.resolved_input is not None:
        parts.append(f"args={summarize(entry.resolved_input)}")
    return " ".join(parts)


def trace_dump(
    entries: list[ExecutionLogEntry],
    max_lines: int = 200,
    include_inputs: bool = False,
) -> str:
    """Render the last ``max_lines`` entries as a readable trace."""
    lines = [f"Execution trace (entries={len(entries)})"]
    for entry in entries[-max_lines:] if max_lines > 0 else []:
        lines.append(format_entry(entry, include_inputs))
    return "\n".join(lines) + "\n"
