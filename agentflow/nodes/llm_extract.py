"""LLM Extract node - structured JSON extraction from text or attachments."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import TYPE_CHECKING, Any

from .base import NodeExecutor

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..engine.expression_engine import ExpressionEngine
    from ..engine.llm_provider import LLMClient
    from ..engine.types import NodeDefinition, ResultEnvelope

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an information extraction assistant. Given instructions and a JSON schema, "
    "produce ONLY valid minified JSON that matches the schema. Do not include any extra commentary."
)
REPAIR_PROMPT = "Fix the given JSON. RETURN ONLY VALID JSON."

_FENCE_PATTERN = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)

_TEXTUAL_MIME_PREFIXES = ("text/",)
_TEXTUAL_MIME_TYPES = {
    "application/json",
    "application/xml",
    "application/x-yaml",
    "application/yaml",
    "application/csv",
}


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    return match.group(1).strip() if match else stripped


def stub_from_schema(schema: Any) -> Any:
    """
    Deterministic placeholder value shaped like ``schema``.

    Accepts JSON Schema (``type``/``properties``/``items``) as well as the
    informal shape style planners emit (``{"mentions": ["string"]}``).
    """
    if isinstance(schema, dict):
        schema_type = schema.get("type")
        if schema_type == "object" or "properties" in schema:
            properties = schema.get("properties") or {}
            return {key: stub_from_schema(value) for key, value in properties.items()}
        if schema_type == "array":
            return []
        if schema_type in ("number", "integer"):
            return 0
        if schema_type == "boolean":
            return False
        if schema_type == "string":
            return ""
        if schema_type == "null":
            return None
        return {key: stub_from_schema(value) for key, value in schema.items()}
    if isinstance(schema, list):
        return []
    if isinstance(schema, str):
        return {"number": 0, "integer": 0, "boolean": False, "array": [], "object": {}}.get(
            schema.lower(), ""
        )
    return schema


def _is_textual(mime_type: str | None) -> bool:
    if not mime_type:
        return True
    mime = mime_type.lower()
    return mime.startswith(_TEXTUAL_MIME_PREFIXES) or mime in _TEXTUAL_MIME_TYPES


def decode_payload(content: str, mime_type: str | None, filename: str | None = None) -> str:
    """Decode a base64 payload to text; binary payloads become a placeholder."""
    placeholder = f"BINARY_CONTENT({mime_type or 'application/octet-stream'}"
    placeholder += f", {filename})" if filename else ")"
    if not _is_textual(mime_type):
        return placeholder
    try:
        return base64.b64decode(content, validate=False).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return placeholder


class LlmExtractExecutor(NodeExecutor):
    """
    LLM Extract node.

    Input:
    - instructions: what to extract (required)
    - outputJsonSchema: shape of the result JSON (required)
    - text | items | base64content (+ mimeType, filename): material to analyze
    - forceStub: skip the model and return a schema-shaped placeholder

    Output: ``{"result": <json>, "rawText": <str>, "meta": {"mode", "model"}}``
    """

    def __init__(
        self,
        llm_client: LLMClient | None = None,
        repair_attempts: int = 2,
        engine: ExpressionEngine | None = None,
    ) -> None:
        super().__init__(engine)
        self.llm_client = llm_client
        self.repair_attempts = repair_attempts

    @property
    def type(self) -> str:
        return "llm.extract"

    @property
    def description(self) -> str:
        return "Extract structured JSON from text with an LLM"

    async def execute(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        instructions = self.resolve_input(node, "instructions", context)
        if not isinstance(instructions, str) or not instructions.strip():
            logger.warning("llm.extract node '%s' missing 'instructions'", node.id)
            return self.failure(node, "llm.extract: missing 'instructions'", "BadInput")

        schema = self.resolve_input(node, "outputJsonSchema", context)
        if schema is None:
            logger.warning("llm.extract node '%s' missing 'outputJsonSchema'", node.id)
            return self.failure(node, "llm.extract: missing 'outputJsonSchema'", "BadInput")

        raw_text = self._collect_text(node, context)
        force_stub = self.resolve_input(node, "forceStub", context) is True

        if force_stub or self.llm_client is None:
            logger.debug("llm.extract node '%s' running in stub mode", node.id)
            return self._output(node, stub_from_schema(schema), raw_text, "stub", "stub")

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Instructions:\n{instructions.strip()}\n"
                    f"JSON Schema (shape, not strict):\n{json.dumps(schema, ensure_ascii=False)}\n"
                    f"Text to analyze:\n{raw_text}"
                ),
            },
        ]
        try:
            response = await self.llm_client.complete(
                messages, response_format={"type": "json_object"}
            )
        except Exception as e:
            logger.warning("llm.extract node '%s' extraction failed: %s", node.id, e)
            return self.failure(
                node, f"llm.extract: extraction failed: {e}", "LlmError", mode="llm-extract-failed"
            )
        model = response.model or self.llm_client.model
        answer = response.text or ""

        attempt = 0
        while True:
            try:
                result = json.loads(strip_code_fences(answer))
                break
            except json.JSONDecodeError as e:
                if attempt >= self.repair_attempts:
                    logger.warning(
                        "llm.extract node '%s' invalid model JSON after %d repairs: %s",
                        node.id,
                        attempt,
                        answer[:200],
                    )
                    return self.failure(
                        node,
                        f"llm.extract: model did not return valid JSON: {e}",
                        "BadModelOutput",
                        mode="llm-json-parse-error",
                    )
                attempt += 1
                logger.info("llm.extract node '%s' repairing model JSON, attempt %d", node.id, attempt)
                try:
                    repaired = await self.llm_client.complete(
                        [
                            {"role": "system", "content": REPAIR_PROMPT},
                            {"role": "user", "content": answer},
                        ]
                    )
                except Exception as repair_error:
                    logger.warning(
                        "llm.extract node '%s' JSON repair failed: %s", node.id, repair_error
                    )
                    return self.failure(
                        node,
                        f"llm.extract: JSON repair failed: {repair_error}",
                        "LlmError",
                        mode="llm-json-repair-failed",
                    )
                answer = repaired.text or ""

        logger.debug("llm.extract node '%s' completed mode='llm'", node.id)
        return self._output(node, result, raw_text, "llm", model)

    def _collect_text(self, node: NodeDefinition, context: ExecutionContext) -> str:
        text = self.resolve_input(node, "text", context)
        if isinstance(text, str) and text.strip():
            return text

        items = self.resolve_input(node, "items", context)
        if isinstance(items, list) and items:
            parts = [self._item_text(item) for item in items]
            return "\n\n".join(part for part in parts if part)

        content = self.resolve_input(node, "base64content", context)
        if isinstance(content, str) and content.strip():
            return decode_payload(
                content,
                self.resolve_input(node, "mimeType", context),
                self.resolve_input(node, "filename", context),
            )
        return ""

    def _item_text(self, item: Any) -> str:
        if isinstance(item, str):
            return item
        if isinstance(item, dict):
            if isinstance(item.get("text"), str):
                return item["text"]
            content = item.get("base64content") or item.get("blobRef")
            if isinstance(content, str) and content:
                return decode_payload(content, item.get("mimeType"), item.get("filename"))
        return ""

    def _output(
        self, node: NodeDefinition, result: Any, raw_text: str, mode: str, model: str
    ) -> ResultEnvelope:
        return self.success(
            node,
            {"result": result, "rawText": raw_text, "meta": {"mode": mode, "model": model}},
            mode=mode,
        )
