"""Trigger node - entry point that exposes the seed event."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import NodeExecutor

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..engine.types import NodeDefinition, ResultEnvelope


class TriggerExecutor(NodeExecutor):
    """Trigger node - passes the seed event on as its output."""

    @property
    def type(self) -> str:
        return "trigger"

    @property
    def description(self) -> str:
        return "Workflow entry point exposing the seed event"

    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        event = context.event
        return self.success(
            node,
            event if event is not None else {},
            mode=self.get_input(node, "mode", "manual"),
        )
