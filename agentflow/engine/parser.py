"""Workflow document parsing."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..core.exceptions import WorkflowParseError
from .types import Workflow

logger = logging.getLogger(__name__)

WRAPPER_KEY = "workflow"


def _problem(loc: Any, msg: str) -> dict[str, Any]:
    return {"loc": list(loc) if isinstance(loc, (list, tuple)) else [loc], "msg": msg}


def _decode(document: str | bytes | dict[str, Any]) -> dict[str, Any]:
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8")
        except UnicodeDecodeError as e:
            raise WorkflowParseError(
                "Workflow document is not valid UTF-8", [_problem([], str(e))]
            ) from e

    if isinstance(document, str):
        if not document.strip():
            raise WorkflowParseError(
                "Workflow document is empty", [_problem([], "empty document")]
            )
        try:
            data = json.loads(document)
        except json.JSONDecodeError as e:
            raise WorkflowParseError(
                f"Workflow document is not valid JSON: {e.msg}",
                [_problem(["line", e.lineno, "column", e.colno], e.msg)],
            ) from e
    else:
        data = document

    if not isinstance(data, dict):
        raise WorkflowParseError(
            "Workflow document must be a JSON object",
            [_problem([], f"expected object, got {type(data).__name__}")],
        )

    # Planner output wraps the workflow under a top-level key
    wrapped = data.get(WRAPPER_KEY)
    if "nodes" not in data and isinstance(wrapped, dict):
        return wrapped
    return data


def parse_workflow(document: str | bytes | dict[str, Any]) -> Workflow:
    """
    Parse a workflow document.

    Accepts JSON text, UTF-8 bytes or an already decoded mapping. Unknown fields
    are ignored; structural problems raise WorkflowParseError with one entry per
    problem (``loc``/``msg``).
    """
    from ..schemas.workflow import WorkflowSchema

    data = _decode(document)
    try:
        schema = WorkflowSchema.model_validate(data)
    except ValidationError as e:
        problems = [_problem(err["loc"], err["msg"]) for err in e.errors()]
        raise WorkflowParseError(
            f"Invalid workflow document ({len(problems)} problem(s))", problems
        ) from e

    workflow = schema.to_workflow()
    duplicates = workflow.duplicate_node_ids()
    if duplicates:
        raise WorkflowParseError(
            f"Duplicate node ids: {', '.join(duplicates)}",
            [_problem(["nodes"], f"duplicate id '{node_id}'") for node_id in duplicates],
        )

    logger.debug("Parsed workflow '%s' with %d nodes", workflow.name or "", len(workflow.nodes))
    return workflow


def load_workflow(path: str | Path) -> Workflow:
    """Read and parse a workflow file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise WorkflowParseError(
            f"Cannot read workflow file {path}: {e.strerror or e}", [_problem([str(path)], str(e))]
        ) from e
    return parse_workflow(text)
