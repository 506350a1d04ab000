"""Custom exceptions for the workflow runtime.

Node failures never surface as exceptions: executors report them in-band on the
result envelope. The classes here cover the places where raising is the
contract (parsing, up-front validation, sandbox evaluation, provider I/O).
"""

from typing import Any


class WorkflowEngineError(Exception):
    """Base exception for all runtime errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class WorkflowParseError(WorkflowEngineError):
    """Raised when a workflow document cannot be turned into a Workflow."""

    def __init__(self, message: str, problems: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message=message, details={"problems": problems or []})
        self.problems = problems or []


class WorkflowValidationError(WorkflowEngineError):
    """Raised when a Workflow is structurally unusable (e.g. duplicate node ids)."""

    def __init__(self, message: str, node_ids: list[str] | None = None) -> None:
        super().__init__(message=message, details={"node_ids": node_ids or []})
        self.node_ids = node_ids or []


class ExpressionError(WorkflowEngineError):
    """Raised by expression evaluators when source text cannot be evaluated."""

    def __init__(self, message: str, expression: str | None = None) -> None:
        super().__init__(message=message, details={"expression": expression})
        self.expression = expression


class ActionProviderError(WorkflowEngineError):
    """Raised by action providers when a remote operation fails."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        action_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            message=message,
            details={
                "provider": provider,
                "action_id": action_id,
                "status_code": status_code,
            },
        )
        self.provider = provider
        self.action_id = action_id
        self.status_code = status_code
