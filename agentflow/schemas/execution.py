"""Run result Pydantic schemas."""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..engine.types import ErrorInfo, ExecutionLogEntry, ResultEnvelope, RunResult


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class ErrorInfoSchema(BaseModel):
    """Schema for a node error."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    type: str | None = None
    stack_trace: str | None = Field(None, alias="stackTrace")
    cause: str | None = None

    @classmethod
    def from_error(cls, error: ErrorInfo) -> "ErrorInfoSchema":
        return cls(
            message=error.message,
            type=error.type,
            stack_trace=error.stack_trace,
            cause=error.cause,
        )


class ResultEnvelopeSchema(BaseModel):
    """Schema for a node result envelope."""

    output: Any = None
    meta: dict[str, Any] | None = None
    error: ErrorInfoSchema | None = None
    ok: bool = True

    @classmethod
    def from_envelope(cls, envelope: ResultEnvelope) -> "ResultEnvelopeSchema":
        return cls(
            output=envelope.output,
            meta=envelope.meta,
            error=ErrorInfoSchema.from_error(envelope.error) if envelope.error else None,
            ok=envelope.ok,
        )


class ExecutionLogEntrySchema(BaseModel):
    """Schema for one execution trace entry."""

    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(..., alias="nodeId")
    started_at: datetime = Field(..., alias="startedAt")
    finished_at: datetime | None = Field(None, alias="finishedAt")
    duration_ms: int | None = Field(None, alias="durationMs")
    status: str | None = None
    output_summary: str | None = Field(None, alias="outputSummary")
    error_summary: str | None = Field(None, alias="errorSummary")
    resolved_input: Any = Field(None, alias="resolvedInput")

    @classmethod
    def from_entry(cls, entry: ExecutionLogEntry) -> "ExecutionLogEntrySchema":
        return cls(
            node_id=entry.node_id,
            started_at=entry.started_at,
            finished_at=entry.finished_at,
            duration_ms=entry.duration_ms,
            status=entry.status.value if entry.status else None,
            output_summary=entry.output_summary,
            error_summary=entry.error_summary,
            resolved_input=entry.resolved_input,
        )


class RunResultSchema(BaseModel):
    """Serializable view of a finished run."""

    model_config = ConfigDict(populate_by_name=True)

    workflow: str | None = None
    start_node_id: str | None = Field(None, alias="startNodeId")
    visited: list[str] = Field(default_factory=list)
    succeeded: bool = True
    nodes: dict[str, ResultEnvelopeSchema] = Field(default_factory=dict)
    errors: dict[str, ErrorInfoSchema] = Field(default_factory=dict)
    logs: list[ExecutionLogEntrySchema] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: RunResult) -> "RunResultSchema":
        context = result.context
        return cls(
            workflow=result.workflow.name,
            start_node_id=result.start_node_id,
            visited=list(result.visited),
            succeeded=result.succeeded,
            nodes={
                node_id: ResultEnvelopeSchema.from_envelope(envelope)
                for node_id, envelope in context.nodes.items()
            },
            errors={
                node_id: ErrorInfoSchema.from_error(error)
                for node_id, error in context.errors.items()
            },
            logs=[ExecutionLogEntrySchema.from_entry(entry) for entry in context.logs],
        )

    def to_json(self, indent: int | None = 2) -> str:
        # Node outputs may hold values pydantic cannot serialize; fall back to str()
        return json.dumps(
            self.model_dump(by_alias=True), indent=indent, ensure_ascii=False, default=_json_default
        )
