"""Per-run execution context: the blackboard all nodes read from."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .trace import DEFAULT_SUMMARY_LENGTH, summarize, trace_dump
from .types import (
    ErrorInfo,
    ExecutionLogEntry,
    NodeRunStatus,
    ResultEnvelope,
    RunOptions,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() * 1000)


class ExecutionContext:
    """
    Shared state for a single workflow run.

    - event: seed payload, set at construction and never replaced
    - variables: ad-hoc run variables (``$.vars.*`` references)
    - nodes: per-node envelopes in execution order
    - errors: quick index of node errors
    - logs: append-only execution log entries

    Only the runner writes ``nodes``/``errors``/``logs``; executors get read access.
    """

    def __init__(
        self,
        options: RunOptions | None = None,
        event: Any = None,
        variables: dict[str, Any] | None = None,
        summary_max_length: int = DEFAULT_SUMMARY_LENGTH,
    ) -> None:
        self.options = options or RunOptions()
        self._event = event
        self.variables: dict[str, Any] = dict(variables or {})
        self.nodes: dict[str, ResultEnvelope] = {}
        self.errors: dict[str, ErrorInfo] = {}
        self.logs: list[ExecutionLogEntry] = []
        self.summary_max_length = summary_max_length

    @property
    def event(self) -> Any:
        return self._event

    def get_result(self, node_id: str) -> ResultEnvelope | None:
        return self.nodes.get(node_id)

    def get_output(self, node_id: str) -> Any:
        envelope = self.nodes.get(node_id)
        return envelope.output if envelope else None

    # --- Results ---

    def set_node_result(self, node_id: str, envelope: ResultEnvelope) -> None:
        self.nodes[node_id] = envelope
        if envelope.error is not None:
            self.errors[node_id] = envelope.error

    # --- Log lifecycle ---

    def log_node_start(self, node_id: str, resolved_input: Any = None) -> ExecutionLogEntry:
        entry = ExecutionLogEntry(
            node_id=node_id,
            started_at=_now(),
            resolved_input=resolved_input if self.options.debug_include_resolved_inputs else None,
        )
        self.logs.append(entry)
        return entry

    def log_node_end(
        self,
        node_id: str,
        envelope: ResultEnvelope,
        entry: ExecutionLogEntry | None = None,
    ) -> ExecutionLogEntry:
        if entry is None:
            entry = next((e for e in reversed(self.logs) if e.node_id == node_id), None)
        if entry is None:
            entry = ExecutionLogEntry(node_id=node_id, started_at=_now())
            self.logs.append(entry)

        entry.finished_at = _now()
        entry.duration_ms = _elapsed_ms(entry.started_at, entry.finished_at)
        if envelope.error is None:
            entry.status = NodeRunStatus.OK
            entry.output_summary = summarize(envelope.output, self.summary_max_length)
        else:
            entry.status = NodeRunStatus.ERROR
            entry.error_summary = summarize(
                f"{envelope.error.type or 'Error'}: {envelope.error.message}",
                self.summary_max_length,
            )
            self.errors[node_id] = envelope.error
        return entry

    def log_node_skipped(self, node_id: str, reason: str | None = None) -> ExecutionLogEntry:
        started = _now()
        entry = ExecutionLogEntry(
            node_id=node_id,
            started_at=started,
            finished_at=started,
            duration_ms=0,
            status=NodeRunStatus.SKIPPED,
            output_summary=f"skipped: {reason}" if reason else None,
        )
        self.logs.append(entry)
        return entry

    def trace_dump(self, max_lines: int = 200) -> str:
        return trace_dump(
            self.logs,
            max_lines=max_lines,
            include_inputs=self.options.debug_include_resolved_inputs,
        )
