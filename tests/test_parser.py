"""Tests for workflow document parsing."""

from __future__ import annotations

import json

import pytest

from agentflow.core.exceptions import WorkflowParseError
from agentflow.engine.parser import load_workflow, parse_workflow


class TestParseWorkflow:

    def test_camel_case_fields(self):
        workflow = parse_workflow(
            {
                "name": "wf",
                "nodes": [
                    {
                        "id": "a",
                        "type": "action",
                        "actionId": "add_comment",
                        "provider": "youtrack",
                        "next": [
                            {
                                "nextNodeId": "b",
                                "relationDescription": "when ok",
                                "invokeCondition": "#a.ok",
                            }
                        ],
                    },
                    {"id": "b"},
                ],
            }
        )

        a = workflow.get_node("a")
        assert a.action_id == "add_comment"
        assert a.provider == "youtrack"
        assert a.input == {}
        edge = a.next[0]
        assert (edge.next_node_id, edge.relation_description, edge.invoke_condition) == (
            "b",
            "when ok",
            "#a.ok",
        )
        assert workflow.get_node("b").type is None
        assert workflow.get_node("b").next == ()

    def test_unknown_fields_are_ignored(self):
        workflow = parse_workflow(
            '{"name": "wf", "owner": "me", "nodes": [{"id": "a", "ui": {"x": 1}}]}'
        )

        assert [n.id for n in workflow.nodes] == ["a"]

    def test_params_is_accepted_as_input(self):
        workflow = parse_workflow({"nodes": [{"id": "a", "params": {"code": "1"}}]})

        assert workflow.nodes[0].input == {"code": "1"}

    def test_input_wins_over_params(self):
        workflow = parse_workflow(
            {"nodes": [{"id": "a", "input": {"code": "new"}, "params": {"code": "old"}}]}
        )

        assert workflow.nodes[0].input == {"code": "new"}

    def test_wrapped_document(self):
        workflow = parse_workflow(b'{"workflow": {"name": "inner", "version": 2, "nodes": []}}')

        assert workflow.name == "inner"
        assert workflow.version == "2"
        assert workflow.nodes == ()

    def test_missing_nodes_means_empty(self):
        assert parse_workflow("{}").nodes == ()


class TestParseErrors:

    @pytest.mark.parametrize("document", ["", "   ", b""])
    def test_blank_document(self, document):
        with pytest.raises(WorkflowParseError, match="empty"):
            parse_workflow(document)

    def test_invalid_json(self):
        with pytest.raises(WorkflowParseError) as exc_info:
            parse_workflow('{"nodes": [\n  {"id": }\n]}')

        (problem,) = exc_info.value.problems
        assert problem["loc"][0] == "line"
        assert problem["loc"][1] == 2

    def test_non_object_document(self):
        with pytest.raises(WorkflowParseError, match="JSON object"):
            parse_workflow("[1, 2]")

    def test_missing_node_id(self):
        with pytest.raises(WorkflowParseError) as exc_info:
            parse_workflow({"nodes": [{"type": "js"}]})

        assert exc_info.value.problems[0]["loc"] == ["nodes", 0, "id"]

    def test_empty_node_id(self):
        with pytest.raises(WorkflowParseError):
            parse_workflow({"nodes": [{"id": ""}]})

    def test_wrong_shapes(self):
        with pytest.raises(WorkflowParseError) as exc_info:
            parse_workflow({"nodes": [{"id": "a", "next": "b"}, {"id": "c", "input": [1]}]})

        locs = [problem["loc"] for problem in exc_info.value.problems]
        assert ["nodes", 0, "next"] in locs
        assert ["nodes", 1, "input"] in locs

    def test_duplicate_ids(self):
        with pytest.raises(WorkflowParseError, match="Duplicate node ids: a"):
            parse_workflow({"nodes": [{"id": "a"}, {"id": "b"}, {"id": "a"}]})


class TestLoadWorkflow:

    def test_example_fixture(self, fixtures_dir):
        workflow = load_workflow(fixtures_dir / "workflow-example.json")

        assert workflow.name == "Comment on mentioned issues"
        assert [n.id for n in workflow.nodes][:2] == ["t1", "pick_ids"]
        add_comment = workflow.get_node("add_comment")
        assert add_comment.input["actionId"] == "add_comment"
        guard = workflow.get_node("has_mentions").next[0]
        assert guard.invoke_condition == "#has_mentions.ok"

    def test_missing_file(self, tmp_path):
        with pytest.raises(WorkflowParseError, match="Cannot read"):
            load_workflow(tmp_path / "missing.json")

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "wf.json"
        path.write_text(json.dumps({"name": "disk", "nodes": [{"id": "a"}]}), encoding="utf-8")

        assert load_workflow(path).name == "disk"
