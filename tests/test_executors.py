"""Tests for the built-in node executors."""

from __future__ import annotations

import pytest

from agentflow.engine.types import NodeDefinition
from agentflow.nodes import (
    ActionExecutor,
    ExitExecutor,
    ScriptExecutor,
    TemplateExecutor,
    TriggerExecutor,
)
from agentflow.nodes.template import render_template

from fakes import FakeActionProvider


def node(node_type: str, **kwargs) -> NodeDefinition:
    return NodeDefinition(id=kwargs.pop("id", "n1"), type=node_type, **kwargs)


class TestTrigger:

    @pytest.mark.asyncio
    async def test_passes_event_through(self, make_context):
        ctx = make_context(event={"issue": {"id": "ABC-1"}})
        envelope = await TriggerExecutor().execute(node("trigger", input={"mode": "webhook"}), ctx)

        assert envelope.ok
        assert envelope.output == {"issue": {"id": "ABC-1"}}
        assert envelope.meta == {"nodeId": "n1", "type": "trigger", "mode": "webhook"}

    @pytest.mark.asyncio
    async def test_without_event(self, make_context):
        envelope = await TriggerExecutor().execute(node("trigger"), make_context())

        assert envelope.output == {}
        assert envelope.meta["mode"] == "manual"


class TestExit:

    @pytest.mark.asyncio
    async def test_marks_end(self, make_context):
        envelope = await ExitExecutor().execute(node("exit"), make_context())

        assert envelope.output == {"ok": True}


class TestScript:

    @pytest.fixture
    def executor(self) -> ScriptExecutor:
        return ScriptExecutor()

    @pytest.mark.asyncio
    async def test_missing_code(self, executor, make_context):
        envelope = await executor.execute(node("js", input={"args": {}}), make_context())

        assert envelope.error.type == "BadInput"
        assert envelope.error.message == "js: missing 'code' string in input"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code",
        [
            "import os",
            "args.__class__",
            "EVAL(args)",
            "open('/etc/passwd')",
            "lambda: 1",
        ],
    )
    async def test_forbidden_constructs(self, executor, make_context, code):
        envelope = await executor.execute(node("js", input={"code": code}), make_context())

        assert envelope.error.type == "ForbiddenCode"

    @pytest.mark.asyncio
    async def test_evaluation_error(self, executor, make_context):
        envelope = await executor.execute(
            node("js", input={"code": "return missing_name + 1"}), make_context()
        )

        assert envelope.error.type == "ScriptError"
        assert envelope.error.message.startswith("js evaluation failed:")

    @pytest.mark.asyncio
    async def test_args_are_bound(self, executor, make_context):
        ctx = make_context({"extract": {"result": {"mentions": ["A-1", "B-2"]}}})
        code = "const mentions = args.mentions || [];\nreturn {ok: length(mentions) > 0, count: mentions.length}"
        envelope = await executor.execute(
            node("js", input={"args": "#extract.result", "code": code}), ctx
        )

        assert envelope.ok, envelope.error
        assert envelope.output == {"ok": True, "count": 2}

    @pytest.mark.asyncio
    async def test_args_default_to_none(self, executor, make_context):
        envelope = await executor.execute(
            node("js", input={"code": "args === null"}), make_context()
        )

        assert envelope.output is True

    @pytest.mark.asyncio
    async def test_embedded_references(self, executor, make_context):
        ctx = make_context({"a": {"x": 2}, "b": {"y": 5}})
        envelope = await executor.execute(node("js", input={"code": "#a.x * #b.y"}), ctx)

        assert envelope.output == 10

    @pytest.mark.asyncio
    async def test_mutating_methods_leave_upstream_output_intact(self, executor, make_context):
        ctx = make_context({"a": {"xs": [3, 1, 2]}})
        envelope = await executor.execute(
            node("js", id="b", input={"args": "#a", "code": "return args.xs.pop()"}), ctx
        )

        assert envelope.output == 2
        assert ctx.get_output("a") == {"xs": [3, 1, 2]}

    @pytest.mark.asyncio
    async def test_mutating_methods_leave_event_intact(self, executor, make_context):
        ctx = make_context(event={"tags": ["b", "a"]})
        code = "args.tags.sort(); return args.tags"
        envelope = await executor.execute(
            node("js", input={"args": "$.event", "code": code}), ctx
        )

        assert envelope.output == ["a", "b"]
        assert ctx.event == {"tags": ["b", "a"]}


class TestTemplate:

    @pytest.mark.asyncio
    async def test_renders_placeholders(self, make_context):
        ctx = make_context({"pick": {"issueId": "ABC-1"}})
        envelope = await TemplateExecutor().execute(
            node(
                "template",
                input={
                    "template": "Issue ${args.issueId}: ${ args.tags[1] } (${args.missing})",
                    "args": {"issueId": "#pick.issueId", "tags": ["a", "b"]},
                },
            ),
            ctx,
        )

        assert envelope.output == "Issue ABC-1: b ()"

    @pytest.mark.asyncio
    async def test_missing_template(self, make_context):
        envelope = await TemplateExecutor().execute(node("template", input={}), make_context())

        assert envelope.error.type == "BadInput"

    def test_value_rendering(self):
        args = {"flag": False, "obj": {"k": 1}, "n": 3}
        assert render_template("${args.flag} ${args.obj} ${args.n}", args) == 'false {"k": 1} 3'

    def test_other_placeholders_are_left_alone(self):
        assert render_template("${env.HOME} $args.x", {"x": 1}) == "${env.HOME} $args.x"


class TestAction:

    @pytest.fixture
    def provider(self) -> FakeActionProvider:
        return FakeActionProvider()

    @pytest.fixture
    def executor(self, provider) -> ActionExecutor:
        return ActionExecutor([provider])

    @pytest.mark.asyncio
    async def test_runs_action_with_resolved_input(self, executor, provider, make_context):
        ctx = make_context({"pick": {"issueId": "ABC-1"}})
        envelope = await executor.execute(
            node(
                "action",
                input={
                    "provider": "fake",
                    "actionId": "echo",
                    "actionInput": {"issueId": "#pick.issueId"},
                },
            ),
            ctx,
        )

        assert envelope.ok
        assert envelope.output == {"received": {"issueId": "ABC-1"}}
        assert envelope.meta == {
            "nodeId": "n1",
            "type": "action",
            "provider": "fake",
            "actionId": "echo",
        }
        assert provider.calls == [("echo", {"issueId": "ABC-1"})]

    @pytest.mark.asyncio
    async def test_root_level_shortcuts(self, executor, provider, make_context):
        envelope = await executor.execute(
            node("action", provider="FAKE", action_id="echo"), make_context()
        )

        assert envelope.ok
        assert provider.calls == [("echo", {})]

    @pytest.mark.asyncio
    async def test_scalar_input_is_wrapped(self, executor, provider, make_context):
        ctx = make_context({"text": "hello"})
        await executor.execute(
            node("action", input={"provider": "fake", "actionId": "echo", "actionInput": "#text"}),
            ctx,
        )

        assert provider.calls == [("echo", {"value": "hello"})]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "config,error_type",
        [
            ({"actionId": "echo"}, "BadInput"),
            ({"provider": "fake"}, "BadInput"),
            ({"provider": "jira", "actionId": "echo"}, "ProviderMissing"),
            ({"provider": "fake", "actionId": "delete_all"}, "ActionMissing"),
        ],
    )
    async def test_configuration_errors(self, executor, provider, make_context, config, error_type):
        envelope = await executor.execute(node("action", input=config), make_context())

        assert envelope.error.type == error_type
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_provider_failure(self, executor, make_context):
        envelope = await executor.execute(
            node(
                "action",
                input={"provider": "fake", "actionId": "echo", "actionInput": {"fail": True}},
            ),
            make_context(),
        )

        assert envelope.error.type == "ActionFailed"
        assert "upstream said no" in envelope.error.message
        assert envelope.meta["statusCode"] == 503
        assert envelope.meta["provider"] == "fake"
