"""Safety executors returned by the registry when no real executor applies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import NodeExecutor

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..engine.types import NodeDefinition, ResultEnvelope


class MissingExecutor(NodeExecutor):
    """Returned for node types nobody registered."""

    def __init__(self, node_type: str) -> None:
        super().__init__()
        self._type = node_type

    @property
    def type(self) -> str:
        return self._type

    @property
    def description(self) -> str:
        return "Placeholder for unknown node types"

    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        return self.failure(
            node,
            f"No executor registered for node type '{self._type}'",
            "ExecutorMissing",
        )


class NotImplementedExecutor(NodeExecutor):
    """Registered for types that are known but intentionally unimplemented."""

    def __init__(self, node_type: str) -> None:
        super().__init__()
        self._type = node_type

    @property
    def type(self) -> str:
        return self._type

    @property
    def description(self) -> str:
        return "Known node type without an implementation"

    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        return self.failure(
            node,
            f"Executor for type '{self._type}' not implemented",
            "NotImplemented",
        )
