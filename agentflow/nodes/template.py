"""Template node - render ``${args.path}`` placeholders into a string."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from ..engine.reference_resolver import resolve_path
from .base import NodeExecutor

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..engine.types import NodeDefinition, ResultEnvelope

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\$\{\s*args\.([^}]+?)\s*\}")


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def render_template(template: str, args: Any) -> str:
    """Replace each ``${args.path}`` with the value at ``path``; missing values render empty."""

    def replace(match: re.Match[str]) -> str:
        segments = [s for s in match.group(1).split(".") if s]
        return _to_text(resolve_path(args, segments))

    return PLACEHOLDER_PATTERN.sub(replace, template)


class TemplateExecutor(NodeExecutor):
    """Template node - renders ``input.template`` against the resolved ``input.args``."""

    @property
    def type(self) -> str:
        return "template"

    @property
    def description(self) -> str:
        return "Render a text template from node outputs"

    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        template = self.get_input(node, "template")
        if not isinstance(template, str):
            logger.warning("Template node '%s' missing 'template'", node.id)
            return self.failure(node, "template: missing 'template' string in input", "BadInput")

        args = self.resolve_input(node, "args", context)
        rendered = render_template(template, args)

        logger.debug("Template node '%s' completed", node.id)
        return self.success(node, rendered)
