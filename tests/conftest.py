"""Shared fixtures for runtime tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from agentflow.core.config import Settings
from agentflow.engine.context import ExecutionContext
from agentflow.engine.node_registry import NodeRegistry
from agentflow.engine.types import ErrorInfo, ResultEnvelope, RunOptions

from fakes import EchoExecutor, FailingExecutor, RaisingExecutor, SlowExecutor

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def make_context() -> Callable[..., ExecutionContext]:
    """Build a context pre-populated with node outputs (and optional errors)."""

    def _make(
        outputs: dict[str, Any] | None = None,
        errors: dict[str, ErrorInfo] | None = None,
        event: Any = None,
        variables: dict[str, Any] | None = None,
        options: RunOptions | None = None,
    ) -> ExecutionContext:
        context = ExecutionContext(options=options, event=event, variables=variables)
        for node_id, output in (outputs or {}).items():
            context.set_node_result(node_id, ResultEnvelope(output=output))
        for node_id, error in (errors or {}).items():
            context.set_node_result(node_id, ResultEnvelope(error=error))
        return context

    return _make


@pytest.fixture
def echo() -> EchoExecutor:
    return EchoExecutor()


@pytest.fixture
def test_registry(echo: EchoExecutor) -> NodeRegistry:
    """Registry with deterministic executors for traversal tests."""
    registry = NodeRegistry()
    registry.register("trigger", echo)
    registry.register("echo", echo)
    registry.register("fail", FailingExecutor())
    registry.register("raise", RaisingExecutor())
    registry.register("slow", SlowExecutor())
    return registry

