"""Core type definitions for the workflow runtime."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.config import Settings
    from .context import ExecutionContext


# --- Workflow Schema Types ---


@dataclass(frozen=True)
class Edge:
    """Directed, optionally guarded transition to a candidate next node."""

    next_node_id: str | None
    relation_description: str | None = None
    invoke_condition: str | None = None

    @property
    def is_conditional(self) -> bool:
        return bool(self.invoke_condition and self.invoke_condition.strip())


@dataclass(frozen=True)
class NodeDefinition:
    """Definition of a node in a workflow."""

    id: str
    type: str | None
    name: str | None = None
    description: str | None = None
    input: dict[str, Any] = field(default_factory=dict)
    # Root-level shortcuts some planners emit for action nodes
    action_id: str | None = None
    provider: str | None = None
    next: tuple[Edge, ...] = ()


@dataclass(frozen=True)
class Workflow:
    """Workflow definition."""

    name: str | None
    nodes: tuple[NodeDefinition, ...] = ()
    version: str | None = None

    def get_node(self, node_id: str) -> NodeDefinition | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def duplicate_node_ids(self) -> list[str]:
        """Node ids declared more than once, in first-seen order."""
        seen: set[str] = set()
        duplicates: list[str] = []
        for node in self.nodes:
            if node.id in seen and node.id not in duplicates:
                duplicates.append(node.id)
            seen.add(node.id)
        return duplicates


# --- Execution Types ---


@dataclass(frozen=True)
class ErrorInfo:
    """Error attached to a result envelope.

    ``type`` is a short taxonomy tag (``BadInput``, ``ExecutorMissing``, ...) or,
    for exceptions caught by the runner, the exception class name.
    """

    message: str
    type: str | None = None
    stack_trace: str | None = None
    cause: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.type,
            "stackTrace": self.stack_trace,
            "cause": self.cause,
        }


@dataclass(frozen=True)
class ResultEnvelope:
    """Outcome of executing one node."""

    output: Any = None
    meta: dict[str, Any] | None = None
    error: ErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "output": self.output,
            "meta": self.meta,
            "error": self.error.to_dict() if self.error else None,
            "ok": self.ok,
        }


class NodeRunStatus(str, Enum):
    """Final status of a node lifecycle entry."""

    OK = "OK"
    ERROR = "ERROR"
    SKIPPED = "SKIPPED"


@dataclass
class ExecutionLogEntry:
    """One node lifecycle event in the execution trace."""

    node_id: str
    started_at: datetime
    finished_at: datetime | None = None
    duration_ms: int | None = None
    status: NodeRunStatus | None = None
    output_summary: str | None = None
    error_summary: str | None = None
    resolved_input: Any = None


@dataclass(frozen=True)
class RunOptions:
    """Run-scoped configuration."""

    stop_on_error: bool = True
    debug_include_resolved_inputs: bool = False
    node_timeout: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> RunOptions:
        return cls(
            stop_on_error=settings.stop_on_error,
            debug_include_resolved_inputs=settings.debug_include_resolved_inputs,
            node_timeout=settings.node_timeout_seconds,
        )


@dataclass
class RunResult:
    """Final context, the chosen start node and the ordered visited list."""

    context: ExecutionContext
    workflow: Workflow
    start_node_id: str | None
    visited: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.context.errors
