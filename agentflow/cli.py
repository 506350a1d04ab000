"""
Agent workflow runtime CLI
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click

from .core import WorkflowParseError, configure_logging, get_settings
from .engine import RunOptions, WorkflowRunner, create_default_registry, load_workflow
from .engine.llm_provider import create_llm_client
from .nodes import YouTrackActionProvider
from .schemas import RunResultSchema

EXIT_OK = 0
EXIT_NODE_FAILED = 1
EXIT_PARSE_ERROR = 2


def _parse_var(raw: str) -> tuple[str, Any]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise click.BadParameter(f"expected KEY=VALUE, got {raw!r}", param_hint="--var")
    try:
        return key.strip(), json.loads(value)
    except json.JSONDecodeError:
        return key.strip(), value


def _print_problems(error: WorkflowParseError) -> None:
    click.echo(f"Error: {error.message}", err=True)
    for problem in error.problems:
        loc = ".".join(str(part) for part in problem.get("loc", [])) or "<document>"
        click.echo(f"  {loc}: {problem.get('msg')}", err=True)


def build_runner() -> WorkflowRunner:
    """Wire the default registry with collaborators from settings."""
    settings = get_settings()
    registry = create_default_registry(
        settings,
        action_providers=[YouTrackActionProvider.from_settings(settings)],
        llm_client=create_llm_client(settings),
    )
    return WorkflowRunner(registry, settings=settings)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Log level (defaults to AGENTFLOW_LOG_LEVEL)",
)
def cli(log_level: str | None) -> None:
    """Agent workflow runtime CLI"""
    configure_logging(log_level or get_settings().log_level)


@cli.command()
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--event",
    "event_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with the seed event",
)
@click.option("--var", "variables", multiple=True, help="Run variable as KEY=VALUE (JSON values allowed)")
@click.option(
    "--debug-inputs/--no-debug-inputs",
    default=None,
    help="Record resolved node inputs in the trace",
)
@click.option("--trace", is_flag=True, help="Print the execution trace to stderr")
@click.option("--json", "as_json", is_flag=True, help="Print the full run result as JSON")
def run(
    workflow_file: Path,
    event_file: Path | None,
    variables: tuple[str, ...],
    debug_inputs: bool | None,
    trace: bool,
    as_json: bool,
) -> None:
    """Run a workflow from file"""
    settings = get_settings()
    try:
        workflow = load_workflow(workflow_file)
    except WorkflowParseError as e:
        _print_problems(e)
        sys.exit(EXIT_PARSE_ERROR)

    event = None
    if event_file is not None:
        try:
            event = json.loads(event_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"invalid JSON: {e}", param_hint="--event") from e

    options = RunOptions(
        stop_on_error=settings.stop_on_error,
        debug_include_resolved_inputs=(
            settings.debug_include_resolved_inputs if debug_inputs is None else debug_inputs
        ),
        node_timeout=settings.node_timeout_seconds,
    )

    runner = build_runner()
    result = asyncio.run(
        runner.run(
            workflow,
            event=event,
            variables=dict(_parse_var(raw) for raw in variables),
            options=options,
        )
    )

    if trace:
        click.echo(result.context.trace_dump(), err=True)

    if as_json:
        click.echo(RunResultSchema.from_result(result).to_json())
    else:
        click.echo(f"Workflow: {workflow.name or workflow_file.name}")
        click.echo(f"Start node: {result.start_node_id}")
        click.echo(f"Visited: {' -> '.join(result.visited) if result.visited else '(none)'}")
        for node_id, error in result.context.errors.items():
            click.echo(f"Failed: {node_id}: {error.type}: {error.message}")

    sys.exit(EXIT_OK if result.succeeded else EXIT_NODE_FAILED)


@cli.command()
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(workflow_file: Path) -> None:
    """Parse a workflow file and report problems"""
    try:
        workflow = load_workflow(workflow_file)
    except WorkflowParseError as e:
        _print_problems(e)
        sys.exit(EXIT_PARSE_ERROR)

    registry = create_default_registry(get_settings())
    click.echo(f"OK: {workflow.name or workflow_file.name} ({len(workflow.nodes)} nodes)")
    for node in workflow.nodes:
        if not registry.has(node.type):
            click.echo(f"Warning: node '{node.id}' has unknown type '{node.type}'", err=True)


@cli.command("nodes")
def list_nodes() -> None:
    """List registered node types"""
    registry = create_default_registry(get_settings())
    for node_type in registry.list():
        click.echo(f"{node_type:<14}{registry.get(node_type).description}")


def main() -> None:
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
