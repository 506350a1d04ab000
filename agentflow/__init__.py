"""Agent workflow execution engine."""

from .core import Settings, get_settings
from .engine import (
    ExecutionContext,
    NodeRegistry,
    RunOptions,
    RunResult,
    Workflow,
    WorkflowRunner,
    create_default_registry,
    load_workflow,
    parse_workflow,
)

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "ExecutionContext",
    "NodeRegistry",
    "RunOptions",
    "RunResult",
    "Workflow",
    "WorkflowRunner",
    "create_default_registry",
    "load_workflow",
    "parse_workflow",
]
