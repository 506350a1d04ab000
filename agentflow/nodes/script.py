"""Script node - evaluate a small code block in the expression sandbox."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.exceptions import ExpressionError
from .base import NodeExecutor

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..engine.types import NodeDefinition, ResultEnvelope

logger = logging.getLogger(__name__)

FORBIDDEN_TOKENS = ("import", "__", "exec", "eval(", "open(", "globals", "lambda")


class ScriptExecutor(NodeExecutor):
    """
    Script node - runs ``input.code`` with the resolved ``input.args`` bound as ``args``.

    The code is a statement block: assignments, an optional ``return``, and
    JavaScript-style operators (``===``, ``&&``, ``!``) are accepted. Embedded
    ``#node`` references are resolved before evaluation.
    """

    @property
    def type(self) -> str:
        return "js"

    @property
    def description(self) -> str:
        return "Evaluate a code block against node outputs"

    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        code = self.get_input(node, "code")
        if not isinstance(code, str) or not code.strip():
            logger.warning("Script node '%s' missing 'code'", node.id)
            return self.failure(node, "js: missing 'code' string in input", "BadInput")

        lowered = code.lower()
        for token in FORBIDDEN_TOKENS:
            if token in lowered:
                logger.warning("Script node '%s' uses forbidden construct %r", node.id, token)
                return self.failure(
                    node, f"js: forbidden construct detected in code ({token})", "ForbiddenCode"
                )

        args = self.resolve_input(node, "args", context)
        try:
            result = self.engine.evaluate(
                code.strip(), context, node.id, names={"args": args}, strict=True
            )
        except ExpressionError as e:
            logger.warning("Script node '%s' evaluation failed: %s", node.id, e)
            return self.failure(node, f"js evaluation failed: {e}", "ScriptError")

        logger.debug("Script node '%s' completed", node.id)
        return self.success(node, result)
