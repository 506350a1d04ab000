"""Node registry mapping node types to executor instances."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.config import Settings
    from ..nodes.base import NodeExecutor
    from ..nodes.integrations.actions import ActionProvider
    from .expression_engine import ExpressionEngine
    from .llm_provider import LLMClient

logger = logging.getLogger(__name__)


class NodeRegistry:
    """
    Registry for workflow node executors.

    Keys are case-insensitive. Executors are stateless, so one registry can
    serve any number of concurrent runs once it has been populated.
    """

    def __init__(self) -> None:
        self._executors: dict[str, NodeExecutor] = {}

    @staticmethod
    def _key(node_type: str | None) -> str:
        return (node_type or "").strip().lower()

    def register(self, node_type: str, executor: NodeExecutor) -> NodeRegistry:
        """Register (or replace) the executor for a node type."""
        key = self._key(node_type)
        if not key:
            raise ValueError("node type cannot be empty")
        self._executors[key] = executor
        return self

    def register_not_implemented(self, node_type: str) -> NodeRegistry:
        """Register a known type whose executor is intentionally missing."""
        from ..nodes.fallbacks import NotImplementedExecutor

        return self.register(node_type, NotImplementedExecutor(self._key(node_type)))

    def get(self, node_type: str | None) -> NodeExecutor:
        """
        Get the executor for a node type.

        Never raises: unknown or empty types get a MissingExecutor.
        """
        key = self._key(node_type)
        executor = self._executors.get(key)
        if executor is None:
            from ..nodes.fallbacks import MissingExecutor

            logger.debug("No executor registered for node type %r", node_type)
            return MissingExecutor(key)
        return executor

    def has(self, node_type: str | None) -> bool:
        """Check if node type is registered."""
        return self._key(node_type) in self._executors

    def list(self) -> list[str]:
        """List all registered node types."""
        return list(self._executors.keys())


def create_default_registry(
    settings: Settings | None = None,
    action_providers: Iterable[ActionProvider] = (),
    llm_client: LLMClient | None = None,
    engine: ExpressionEngine | None = None,
) -> NodeRegistry:
    """Register all built-in executors with their collaborators injected."""
    from ..core.config import get_settings
    from ..nodes import (
        ActionExecutor,
        ExitExecutor,
        LlmExtractExecutor,
        ScriptExecutor,
        TemplateExecutor,
        TriggerExecutor,
    )

    settings = settings or get_settings()

    script = ScriptExecutor(engine=engine)
    registry = NodeRegistry()
    registry.register("trigger", TriggerExecutor(engine=engine))
    registry.register("js", script)
    registry.register("script", script)
    registry.register("template", TemplateExecutor(engine=engine))
    registry.register("action", ActionExecutor(list(action_providers), engine=engine))
    registry.register(
        "llm.extract",
        LlmExtractExecutor(
            llm_client,
            repair_attempts=settings.llm_json_repair_attempts,
            engine=engine,
        ),
    )
    registry.register("exit", ExitExecutor(engine=engine))
    registry.register_not_implemented("llm.call")
    return registry
