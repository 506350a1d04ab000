"""Action node - delegates to a pluggable external action provider."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ..core.exceptions import ActionProviderError
from .base import NodeExecutor

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..engine.expression_engine import ExpressionEngine
    from ..engine.types import NodeDefinition, ResultEnvelope
    from .integrations.actions import ActionProvider

logger = logging.getLogger(__name__)


class ActionExecutor(NodeExecutor):
    """
    Action node.

    Input:
    - provider: provider id (e.g. "youtrack"); falls back to the node-root ``provider``
    - actionId: action id; falls back to the node-root ``actionId``
    - actionInput: object whose ``#references`` are resolved; a scalar becomes ``{"value": ...}``
    """

    def __init__(
        self, providers: Iterable[ActionProvider] = (), engine: ExpressionEngine | None = None
    ) -> None:
        super().__init__(engine)
        self.providers: dict[str, ActionProvider] = {
            provider.provider_id.lower(): provider for provider in providers
        }

    @property
    def type(self) -> str:
        return "action"

    @property
    def description(self) -> str:
        return "Run an action on an external system"

    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        provider_id = self.get_input(node, "provider", node.provider)
        if not provider_id:
            return self.failure(
                node, "action: missing 'provider'", "BadInput", provider=None, actionId=None
            )
        provider_id = str(provider_id)

        action_id = self.get_input(node, "actionId", node.action_id)
        if not action_id:
            return self.failure(
                node, "action: missing 'actionId'", "BadInput", provider=provider_id, actionId=None
            )
        action_id = str(action_id)
        meta: dict[str, Any] = {"provider": provider_id, "actionId": action_id}

        provider = self.providers.get(provider_id.lower())
        if provider is None:
            logger.warning("Action node '%s' provider not found: '%s'", node.id, provider_id)
            return self.failure(
                node, f"action: provider '{provider_id}' not found", "ProviderMissing", **meta
            )

        if not provider.has_action(action_id):
            logger.warning(
                "Action node '%s' action '%s' not offered by provider '%s'",
                node.id,
                action_id,
                provider_id,
            )
            return self.failure(
                node,
                f"action: provider '{provider_id}' has no action '{action_id}'",
                "ActionMissing",
                **meta,
            )

        raw_input = self.resolve_input(node, "actionInput", context)
        if raw_input is None:
            action_input: dict[str, Any] = {}
        elif isinstance(raw_input, dict):
            action_input = raw_input
        else:
            action_input = {"value": raw_input}

        try:
            result = await provider.run(action_id, action_input)
        except ActionProviderError as e:
            logger.warning(
                "Action node '%s' failed provider='%s' actionId='%s': %s",
                node.id,
                provider_id,
                action_id,
                e.message,
            )
            return self.failure(
                node,
                f"action run failed: {e.message}",
                "ActionFailed",
                statusCode=e.status_code,
                **meta,
            )

        logger.debug(
            "Action node '%s' completed provider='%s' actionId='%s'", node.id, provider_id, action_id
        )
        return self.success(node, result, **meta)
