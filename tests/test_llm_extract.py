"""Tests for the llm.extract executor."""

from __future__ import annotations

import base64

import pytest

from agentflow.engine.types import NodeDefinition
from agentflow.nodes.llm_extract import (
    LlmExtractExecutor,
    decode_payload,
    strip_code_fences,
    stub_from_schema,
)

from fakes import FakeLLMClient

SCHEMA = {"type": "object", "properties": {"mentions": {"type": "array"}}}


def extract_node(**input) -> NodeDefinition:
    config = {"instructions": "List issue ids", "outputJsonSchema": SCHEMA}
    config.update(input)
    return NodeDefinition(id="extract", type="llm.extract", input=config)


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class TestValidation:

    @pytest.mark.asyncio
    async def test_missing_instructions(self, make_context):
        executor = LlmExtractExecutor(FakeLLMClient())
        envelope = await executor.execute(extract_node(instructions="  "), make_context())

        assert envelope.error.type == "BadInput"
        assert "instructions" in envelope.error.message

    @pytest.mark.asyncio
    async def test_missing_schema(self, make_context):
        executor = LlmExtractExecutor(FakeLLMClient())
        envelope = await executor.execute(extract_node(outputJsonSchema=None), make_context())

        assert envelope.error.type == "BadInput"
        assert "outputJsonSchema" in envelope.error.message


class TestStubMode:

    @pytest.mark.asyncio
    async def test_without_client(self, make_context):
        envelope = await LlmExtractExecutor().execute(extract_node(text="ABC-1"), make_context())

        assert envelope.ok
        assert envelope.output == {
            "result": {"mentions": []},
            "rawText": "ABC-1",
            "meta": {"mode": "stub", "model": "stub"},
        }
        assert envelope.meta["mode"] == "stub"

    @pytest.mark.asyncio
    async def test_force_stub_skips_client(self, make_context):
        client = FakeLLMClient('{"mentions": ["X-1"]}')
        envelope = await LlmExtractExecutor(client).execute(
            extract_node(text="X-1", forceStub=True), make_context()
        )

        assert envelope.output["result"] == {"mentions": []}
        assert client.calls == []

    @pytest.mark.parametrize(
        "schema,expected",
        [
            (SCHEMA, {"mentions": []}),
            ({"mentions": ["string"], "count": "number"}, {"mentions": [], "count": 0}),
            ({"type": "boolean"}, False),
            ({"type": "string"}, ""),
            ("integer", 0),
            (
                {"type": "object", "properties": {"inner": {"properties": {"ok": {"type": "boolean"}}}}},
                {"inner": {"ok": False}},
            ),
        ],
    )
    def test_stub_from_schema(self, schema, expected):
        assert stub_from_schema(schema) == expected


class TestModelCalls:

    @pytest.mark.asyncio
    async def test_parses_model_json(self, make_context):
        client = FakeLLMClient('{"mentions": ["ABC-1"]}')
        envelope = await LlmExtractExecutor(client).execute(
            extract_node(text="see ABC-1"), make_context()
        )

        assert envelope.output["result"] == {"mentions": ["ABC-1"]}
        assert envelope.output["meta"] == {"mode": "llm", "model": "fake-model"}
        system, user = client.calls[0]
        assert system["role"] == "system"
        assert "List issue ids" in user["content"]
        assert "see ABC-1" in user["content"]

    @pytest.mark.asyncio
    async def test_code_fences_are_stripped(self, make_context):
        client = FakeLLMClient('```json\n{"mentions": []}\n```')
        envelope = await LlmExtractExecutor(client).execute(extract_node(text="x"), make_context())

        assert envelope.output["result"] == {"mentions": []}

    @pytest.mark.asyncio
    async def test_invalid_json_is_repaired(self, make_context):
        client = FakeLLMClient("{mentions: [", '{"mentions": ["A-1"]}')
        envelope = await LlmExtractExecutor(client).execute(extract_node(text="x"), make_context())

        assert envelope.output["result"] == {"mentions": ["A-1"]}
        assert len(client.calls) == 2
        assert client.calls[1][1]["content"] == "{mentions: ["

    @pytest.mark.asyncio
    async def test_repairs_exhausted(self, make_context):
        client = FakeLLMClient("nope", "still nope", "never")
        envelope = await LlmExtractExecutor(client, repair_attempts=1).execute(
            extract_node(text="x"), make_context()
        )

        assert envelope.error.type == "BadModelOutput"
        assert envelope.meta["mode"] == "llm-json-parse-error"
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_client_failure(self, make_context):
        client = FakeLLMClient(RuntimeError("rate limited"))
        envelope = await LlmExtractExecutor(client).execute(extract_node(text="x"), make_context())

        assert envelope.error.type == "LlmError"
        assert "rate limited" in envelope.error.message
        assert envelope.meta["mode"] == "llm-extract-failed"


class TestInputText:

    @pytest.mark.asyncio
    async def test_items_are_joined(self, make_context):
        items = [
            "first",
            {"text": "second"},
            {"base64content": b64("third"), "mimeType": "text/plain"},
            {"blobRef": b64("%PDF"), "mimeType": "application/pdf", "filename": "a.pdf"},
        ]
        envelope = await LlmExtractExecutor().execute(extract_node(items=items), make_context())

        assert envelope.output["rawText"] == (
            "first\n\nsecond\n\nthird\n\nBINARY_CONTENT(application/pdf, a.pdf)"
        )

    @pytest.mark.asyncio
    async def test_base64_content_from_reference(self, make_context):
        ctx = make_context({"att": {"blobRef": b64("hello"), "mimeType": "text/markdown"}})
        envelope = await LlmExtractExecutor().execute(
            extract_node(base64content="#att.blobRef", mimeType="#att.mimeType"), ctx
        )

        assert envelope.output["rawText"] == "hello"

    def test_decode_payload(self):
        assert decode_payload(b64('{"a": 1}'), "application/json") == '{"a": 1}'
        assert decode_payload(b64("x"), "image/png") == "BINARY_CONTENT(image/png)"
        assert decode_payload(b64("x"), None) == "x"

    def test_strip_code_fences(self):
        assert strip_code_fences("```\n[1]\n```") == "[1]"
        assert strip_code_fences("  {}  ") == "{}"
