"""Node executors for the workflow runtime."""

from .action import ActionExecutor
from .base import NodeExecutor
from .exit import ExitExecutor
from .fallbacks import MissingExecutor, NotImplementedExecutor
from .integrations import ActionProvider, YouTrackActionProvider
from .llm_extract import LlmExtractExecutor
from .script import ScriptExecutor
from .template import TemplateExecutor
from .trigger import TriggerExecutor

__all__ = [
    "NodeExecutor",
    # Fallbacks
    "MissingExecutor",
    "NotImplementedExecutor",
    # Executors
    "TriggerExecutor",
    "ScriptExecutor",
    "TemplateExecutor",
    "ActionExecutor",
    "LlmExtractExecutor",
    "ExitExecutor",
    # Action providers
    "ActionProvider",
    "YouTrackActionProvider",
]
