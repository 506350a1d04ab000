"""Logging setup for command-line runs."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"

_configured = False


def configure_logging(level: str = "info") -> logging.Logger:
    """Install one stream handler on the ``agentflow`` logger.

    Library code only creates module loggers; handlers are attached here so
    embedding applications keep control of their own logging tree.
    """
    global _configured

    logger = logging.getLogger("agentflow")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True

    return logger
