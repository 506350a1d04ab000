"""Base executor class for all workflow node types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..engine.expression_engine import ExpressionEngine, expression_engine
from ..engine.types import ErrorInfo, ResultEnvelope

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..engine.types import NodeDefinition


class NodeExecutor(ABC):
    """
    Abstract base class for all node executors.

    Contract:
    - read configuration from ``node.input``, resolving references before use
    - never mutate the execution context (the runner records results)
    - report failures in-band through the envelope's ``error`` field
    """

    def __init__(self, engine: ExpressionEngine | None = None) -> None:
        self.engine = engine or expression_engine

    @property
    @abstractmethod
    def type(self) -> str:
        """Node type identifier."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description of what the executor does."""
        ...

    @abstractmethod
    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        """Execute the node logic."""
        ...

    def get_input(self, node: NodeDefinition, key: str, default: Any = None) -> Any:
        """Get a raw (unresolved) input value from the node definition."""
        value = node.input.get(key)
        return default if value is None else value

    def resolve_input(
        self,
        node: NodeDefinition,
        key: str,
        context: ExecutionContext,
        default: Any = None,
    ) -> Any:
        """Get an input value with every nested reference resolved."""
        value = self.engine.resolve(node.input.get(key), context, node.id)
        return default if value is None else value

    def meta(self, node: NodeDefinition, **extra: Any) -> dict[str, Any]:
        return {"nodeId": node.id, "type": node.type, **extra}

    def success(self, node: NodeDefinition, output: Any, **meta: Any) -> ResultEnvelope:
        """Helper to create a successful envelope."""
        return ResultEnvelope(output=output, meta=self.meta(node, **meta))

    def failure(
        self,
        node: NodeDefinition,
        message: str,
        error_type: str,
        cause: str | None = None,
        **meta: Any,
    ) -> ResultEnvelope:
        """Helper to create an error envelope."""
        return ResultEnvelope(
            error=ErrorInfo(message=message, type=error_type, cause=cause),
            meta=self.meta(node, **meta),
        )
