"""Core module - config, exceptions, and logging setup."""

from .config import Settings, get_settings
from .exceptions import (
    ActionProviderError,
    ExpressionError,
    WorkflowEngineError,
    WorkflowParseError,
    WorkflowValidationError,
)
from .logging import configure_logging

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "WorkflowEngineError",
    "WorkflowParseError",
    "WorkflowValidationError",
    "ExpressionError",
    "ActionProviderError",
    # Logging
    "configure_logging",
]
