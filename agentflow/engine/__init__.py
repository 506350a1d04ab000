"""Core workflow engine components."""

from .context import ExecutionContext
from .expression_engine import (
    ExpressionEngine,
    ExpressionEvaluator,
    SafeExpressionEvaluator,
    expression_engine,
)
from .node_registry import NodeRegistry, create_default_registry
from .parser import load_workflow, parse_workflow
from .types import (
    Edge,
    ErrorInfo,
    ExecutionLogEntry,
    NodeDefinition,
    NodeRunStatus,
    ResultEnvelope,
    RunOptions,
    RunResult,
    Workflow,
)
from .workflow_runner import WorkflowRunner

__all__ = [
    "Edge",
    "NodeDefinition",
    "Workflow",
    "ErrorInfo",
    "ResultEnvelope",
    "NodeRunStatus",
    "ExecutionLogEntry",
    "RunOptions",
    "RunResult",
    "ExecutionContext",
    "ExpressionEngine",
    "ExpressionEvaluator",
    "SafeExpressionEvaluator",
    "expression_engine",
    "NodeRegistry",
    "create_default_registry",
    "parse_workflow",
    "load_workflow",
    "WorkflowRunner",
]
