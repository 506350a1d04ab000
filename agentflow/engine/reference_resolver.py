"""
Symbolic reference parsing and deep-path resolution.

Supported forms:
    #nodeId                      -> output of nodeId
    #nodeId.output.items[0].name -> ".output" is optional
    #this.flag                   -> node currently executing (textual substitution)
    $.event.issue.id             -> seed event
    $.vars.threshold             -> run variables
    $.nodes.nodeId.output.x      -> full envelope of nodeId (output/meta/error/ok)

Resolution never raises: missing envelopes, keys or indices yield None.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .context import ExecutionContext

logger = logging.getLogger(__name__)

_SEGMENT = r"[A-Za-z0-9_\-]+(?:\[\d+\])*"
_NODE_REF = r"#[A-Za-z_][A-Za-z0-9_\-]*(?:\[\d+\])*(?:\." + _SEGMENT + r")*"
_CONTEXT_REF = r"\$(?:\." + _SEGMENT + r")+"

REFERENCE_PATTERN = re.compile(f"{_NODE_REF}|{_CONTEXT_REF}")
SELF_REFERENCE_PATTERN = re.compile(r"#this(?![A-Za-z0-9_\-])")
_INDEX_PATTERN = re.compile(r"\[(\d+)\]")

OUTPUT_SEGMENT = "output"
LENGTH_SEGMENT = "length"


def apply_self_reference(expression: str, node_id: str | None) -> str:
    """Rewrite ``#this`` into ``#<node_id>``; left untouched without a node id."""
    if not node_id:
        return expression
    return SELF_REFERENCE_PATTERN.sub(f"#{node_id}", expression)


def find_references(expression: str) -> list[str]:
    """Distinct reference tokens in order of first appearance."""
    return list(dict.fromkeys(m.group(0) for m in REFERENCE_PATTERN.finditer(expression)))


def is_reference(text: Any) -> bool:
    """True if ``text`` is exactly one reference token (surrounding blanks allowed)."""
    return isinstance(text, str) and REFERENCE_PATTERN.fullmatch(text.strip()) is not None


def looks_like_reference(text: Any) -> bool:
    """True for strings that should be routed through the resolver."""
    return isinstance(text, str) and (text.startswith("#") or text.startswith("$."))


def split_segment(token: str) -> tuple[str, list[int]]:
    """Split ``name[0][2]`` into ``("name", [0, 2])``."""
    indices = [int(i) for i in _INDEX_PATTERN.findall(token)]
    name = _INDEX_PATTERN.sub("", token)
    return name, indices


def access_property(target: Any, name: str) -> Any:
    if target is None:
        return None
    if isinstance(target, Mapping):
        return target.get(name)
    if isinstance(target, (str, bytes, Sequence)):
        return len(target) if name == LENGTH_SEGMENT else None
    if name.startswith("_"):
        return None
    return getattr(target, name, None)


def access_index(target: Any, index: int) -> Any:
    if target is None:
        return None
    if isinstance(target, Mapping):
        if index in target:
            return target[index]
        return target.get(str(index))
    if isinstance(target, Sequence) and not isinstance(target, (str, bytes)):
        return target[index] if 0 <= index < len(target) else None
    return None


def resolve_path(root: Any, segments: list[str]) -> Any:
    """Apply dot segments (each a name, indices, or both) left to right."""
    current = root
    for segment in segments:
        if current is None:
            return None
        name, indices = split_segment(segment)
        if name:
            current = access_property(current, name)
        for index in indices:
            current = access_index(current, index)
    return current


def _tokens(path: str) -> list[str]:
    return [token for token in path.split(".") if token]


def resolve_node_reference(ref: str, context: ExecutionContext) -> Any:
    tokens = _tokens(ref.strip()[1:])
    if not tokens:
        return None

    node_id, head_indices = split_segment(tokens[0])
    envelope = context.nodes.get(node_id)
    if envelope is None:
        return None

    tail = tokens[1:]
    if tail:
        first_name, first_indices = split_segment(tail[0])
        if first_name == OUTPUT_SEGMENT:
            tail = [f"[{i}]" for i in first_indices] + tail[1:]

    value = envelope.output
    for index in head_indices:
        value = access_index(value, index)
    return resolve_path(value, tail)


def resolve_context_reference(ref: str, context: ExecutionContext) -> Any:
    tokens = _tokens(ref.strip()[1:])
    if not tokens:
        return None

    root_name, root_indices = split_segment(tokens[0])
    if root_name == "event":
        root: Any = context.event
    elif root_name in ("vars", "variables"):
        root = context.variables
    elif root_name == "nodes":
        root = {node_id: envelope.to_dict() for node_id, envelope in context.nodes.items()}
    elif root_name == "errors":
        root = {node_id: error.to_dict() for node_id, error in context.errors.items()}
    else:
        return None

    for index in root_indices:
        root = access_index(root, index)
    return resolve_path(root, tokens[1:])


def resolve_reference(ref: str, context: ExecutionContext) -> Any:
    """Resolve one reference token against the context."""
    text = ref.strip()
    try:
        if text.startswith("#"):
            return resolve_node_reference(text, context)
        if text.startswith("$."):
            return resolve_context_reference(text, context)
    except Exception:
        logger.debug("Reference resolution failed for %r", ref, exc_info=True)
        return None
    return ref
