"""Workflow document Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..engine.types import Edge, NodeDefinition, Workflow


class EdgeSchema(BaseModel):
    """Schema for an outgoing edge of a node."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    next_node_id: str | None = Field(None, alias="nextNodeId", description="Target node id")
    relation_description: str | None = Field(
        None, alias="relationDescription", description="Human-readable label"
    )
    invoke_condition: str | None = Field(
        None, alias="invokeCondition", description="Guard expression; empty means always"
    )

    def to_edge(self) -> Edge:
        return Edge(
            next_node_id=self.next_node_id,
            relation_description=self.relation_description,
            invoke_condition=self.invoke_condition,
        )


class NodeSchema(BaseModel):
    """Schema for a node definition in a workflow document."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "get_attachment",
                "type": "action",
                "input": {
                    "provider": "youtrack",
                    "actionId": "get_attachment",
                    "actionInput": {"issueId": "#pick_ids.issueId"},
                },
                "next": [{"nextNodeId": "extract"}],
            }
        },
    )

    id: str = Field(..., min_length=1, description="Unique node id within the workflow")
    type: str | None = Field(None, description="Executor type, e.g. 'action' or 'js'")
    name: str | None = Field(None, description="Display name")
    description: str | None = Field(None, description="What the node is for")
    input: dict[str, Any] | None = Field(None, description="Executor configuration")
    params: dict[str, Any] | None = Field(None, description="Legacy spelling of 'input'")
    action_id: str | None = Field(None, alias="actionId", description="Root-level action id")
    provider: str | None = Field(None, description="Root-level action provider")
    next: list[EdgeSchema] | None = Field(None, description="Outgoing edges in priority order")

    def to_definition(self) -> NodeDefinition:
        # 'input' wins over 'params' when both are present
        config = self.input if self.input is not None else self.params
        return NodeDefinition(
            id=self.id,
            type=self.type,
            name=self.name,
            description=self.description,
            input=dict(config or {}),
            action_id=self.action_id,
            provider=self.provider,
            next=tuple(edge.to_edge() for edge in self.next or []),
        )


class WorkflowSchema(BaseModel):
    """Schema for a workflow document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = Field(None, description="Workflow name")
    version: str | None = Field(None, description="Document version")
    nodes: list[NodeSchema] | None = Field(None, description="Nodes in declaration order")

    @field_validator("version", mode="before")
    @classmethod
    def _version_to_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def to_workflow(self) -> Workflow:
        return Workflow(
            name=self.name,
            version=self.version,
            nodes=tuple(node.to_definition() for node in self.nodes or []),
        )
