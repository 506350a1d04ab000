"""Pydantic schemas for workflow documents and run results."""

from .execution import (
    ErrorInfoSchema,
    ExecutionLogEntrySchema,
    ResultEnvelopeSchema,
    RunResultSchema,
)
from .workflow import EdgeSchema, NodeSchema, WorkflowSchema

__all__ = [
    # Workflow
    "EdgeSchema",
    "NodeSchema",
    "WorkflowSchema",
    # Execution
    "ErrorInfoSchema",
    "ResultEnvelopeSchema",
    "ExecutionLogEntrySchema",
    "RunResultSchema",
]
