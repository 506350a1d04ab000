"""Action provider contract and the packaged action manifest."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from functools import lru_cache
from importlib import resources
from typing import Any

MANIFEST_PACKAGE = "agentflow.resources"
MANIFEST_FILE = "actions.json"

_MANIFEST_FIELDS = ("id", "provider", "name", "description", "inputSchema", "outputSchema")


@lru_cache
def load_action_manifest() -> tuple[dict[str, Any], ...]:
    """All action descriptors shipped with the package."""
    text = resources.files(MANIFEST_PACKAGE).joinpath(MANIFEST_FILE).read_text(encoding="utf-8")
    return tuple(json.loads(text))


class ActionProvider(ABC):
    """
    Adapter for an external system that exposes named actions.

    Subclasses set ``provider_id`` and implement ``run``; ``list_actions`` defaults
    to the manifest entries tagged with the provider id.
    """

    provider_id: str = ""

    def list_actions(self) -> list[dict[str, Any]]:
        return [
            {key: action.get(key) for key in _MANIFEST_FIELDS}
            for action in load_action_manifest()
            if str(action.get("provider", "")).lower() == self.provider_id.lower()
        ]

    def has_action(self, action_id: str) -> bool:
        return any(action.get("id") == action_id for action in self.list_actions())

    @abstractmethod
    async def run(self, action_id: str, action_input: dict[str, Any]) -> Any:
        """Run an action and return its result payload."""
        ...
