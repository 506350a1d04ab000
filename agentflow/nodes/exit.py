"""Exit node - terminal marker."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import NodeExecutor

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..engine.types import NodeDefinition, ResultEnvelope


class ExitExecutor(NodeExecutor):

    @property
    def type(self) -> str:
        return "exit"

    @property
    def description(self) -> str:
        return "Marks the end of a branch"

    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        return self.success(node, {"ok": True})
