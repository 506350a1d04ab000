"""External system adapters used by action nodes."""

from .actions import ActionProvider, load_action_manifest
from .youtrack import YouTrackActionProvider

__all__ = ["ActionProvider", "YouTrackActionProvider", "load_action_manifest"]
