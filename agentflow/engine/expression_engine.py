"""
Expression engine for edge guards and node inputs.

References (``#node.path``, ``$.event.path``) are resolved first; anything that is
not a single bare reference is evaluated by a pluggable ExpressionEvaluator.
The default evaluator uses simpleeval for safe expression evaluation
(no eval() or exec(), no imports, no dunder access).
"""

from __future__ import annotations

import copy
import json
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from simpleeval import (
    DEFAULT_FUNCTIONS,
    DISALLOW_FUNCTIONS,
    DISALLOW_METHODS,
    DISALLOW_PREFIXES,
    AttributeDoesNotExist,
    EvalWithCompoundTypes,
    FeatureNotAvailable,
)

from ..core.exceptions import ExpressionError
from .reference_resolver import (
    REFERENCE_PATTERN,
    apply_self_reference,
    find_references,
    looks_like_reference,
    resolve_reference,
)

if TYPE_CHECKING:
    from .context import ExecutionContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_EXPRESSION_LENGTH = 4000

_STRING_LITERAL = re.compile(r"(\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*')")
_ASSIGNMENT = re.compile(
    r"^(?:(?:const|let|var)\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=(?!=)\s*(.+)$", re.DOTALL
)
_RETURN = re.compile(r"^return\b\s*(.*)$", re.DOTALL)
_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:(?!=)")


def _unique(values: Any) -> list[Any]:
    result: list[Any] = []
    for value in values:
        if value not in result:
            result.append(value)
    return result


SAFE_FUNCTIONS: dict[str, Any] = {
    **DEFAULT_FUNCTIONS,
    # Type conversion
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "dict": dict,
    # String functions
    "lower": lambda s: str(s).lower(),
    "upper": lambda s: str(s).upper(),
    "trim": lambda s: str(s).strip(),
    "split": lambda s, sep=" ": str(s).split(sep),
    "join": lambda arr, sep="": sep.join(str(x) for x in arr),
    "replace": lambda s, old, new: str(s).replace(old, new),
    "startswith": lambda s, prefix: str(s).startswith(prefix),
    "endswith": lambda s, suffix: str(s).endswith(suffix),
    "includes": lambda haystack, needle: haystack is not None and needle in haystack,
    # Array functions
    "len": len,
    "length": lambda x: len(x) if x is not None else 0,
    "first": lambda arr: arr[0] if arr else None,
    "last": lambda arr: arr[-1] if arr else None,
    "at": lambda arr, idx: arr[idx] if arr and -len(arr) <= idx < len(arr) else None,
    "slice": lambda arr, start, end=None: arr[start:end],
    "reverse": lambda arr: list(reversed(arr)),
    "sort": lambda arr: sorted(arr),
    "unique": _unique,
    "flatten": lambda arr: [item for sublist in arr for item in sublist],
    "compact": lambda arr: [item for item in arr if item],
    # Math functions
    "abs": abs,
    "min": min,
    "max": max,
    "sum": sum,
    "round": round,
    "floor": math.floor,
    "ceil": math.ceil,
    # JSON functions
    "json_stringify": lambda v: json.dumps(v),
    "json_parse": lambda s: json.loads(s) if s else None,
    # Type checking
    "is_array": lambda v: isinstance(v, list),
    "is_empty": lambda v: v is None or v == "" or (isinstance(v, (list, dict)) and len(v) == 0),
    "is_none": lambda v: v is None,
    # Object functions
    "keys": lambda d: list(d.keys()) if isinstance(d, dict) else [],
    "values": lambda d: list(d.values()) if isinstance(d, dict) else [],
    "get": lambda d, key, default=None: d.get(key, default) if isinstance(d, dict) else default,
}


class _SandboxEval(EvalWithCompoundTypes):
    """simpleeval where dict keys shadow dict methods and ``.length`` works on sequences."""

    def _eval_attribute(self, node: Any) -> Any:
        attr = node.attr
        if attr in DISALLOW_METHODS or any(attr.startswith(p) for p in DISALLOW_PREFIXES):
            # Rejected by simpleeval before the receiver is evaluated.
            return super()._eval_attribute(node)

        value = self._eval(node.value)
        if isinstance(value, dict) and attr in value:
            return value[attr]
        if attr == "length" and isinstance(value, (str, list, tuple)):
            return len(value)
        try:
            item = getattr(value, attr)
        except (AttributeError, TypeError):
            raise AttributeDoesNotExist(attr, self.expr) from None
        if callable(item) and item in DISALLOW_FUNCTIONS:
            raise FeatureNotAvailable("This function is forbidden")
        return item


def to_python_syntax(source: str) -> str:
    """Rewrite JavaScript-style operators and literals outside string literals."""
    parts = _STRING_LITERAL.split(source)
    for i in range(0, len(parts), 2):
        code = parts[i]
        code = code.replace("!==", "!=").replace("===", "==")
        code = code.replace("&&", " and ").replace("||", " or ")
        code = re.sub(r"!(?!=)", " not ", code)
        code = re.sub(r"\btrue\b", "True", code)
        code = re.sub(r"\bfalse\b", "False", code)
        code = re.sub(r"\b(?:null|undefined)\b", "None", code)
        code = _BARE_KEY.sub(r"\1\"\2\":", code)
        parts[i] = code
    return "".join(parts)


def split_statements(source: str) -> list[str]:
    """Split on ``;`` and newlines that sit outside strings and brackets."""
    statements: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False

    for char in source:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth = max(depth - 1, 0)
        elif char in ";\n" and depth == 0:
            statements.append("".join(current))
            current = []
            continue
        current.append(char)

    statements.append("".join(current))
    return [s.strip() for s in statements if s.strip()]


def _outside_strings(source: str) -> str:
    return " ".join(_STRING_LITERAL.split(source)[0::2])


def is_statement_block(source: str) -> bool:
    """True when ``source`` has ``;``, ``return`` or an assignment outside string literals."""
    code = _outside_strings(source)
    if ";" in code or re.search(r"\breturn\b", code):
        return True
    return any(_ASSIGNMENT.match(statement) for statement in split_statements(source))


def join_lines(source: str) -> str:
    """Replace newlines outside string literals with spaces."""
    parts = _STRING_LITERAL.split(source)
    for i in range(0, len(parts), 2):
        parts[i] = parts[i].replace("\r", " ").replace("\n", " ")
    return "".join(parts)


class ExpressionEvaluator(ABC):
    """Strategy boundary for the embedded expression sandbox."""

    @abstractmethod
    def evaluate(self, source: str, names: dict[str, Any]) -> Any:
        """Evaluate ``source`` with ``names`` bound; raise ExpressionError on failure."""
        ...


class SafeExpressionEvaluator(ExpressionEvaluator):
    """
    Safe evaluator that doesn't use eval() or exec().

    Single expressions are evaluated directly, even when split over several
    lines. Blocks (code holding ``;``, ``return`` or an assignment) are split on
    ``;`` and newlines and run in their own local scope: ``name = expr`` binds a
    local, ``return expr`` ends the block, otherwise the last expression's value
    is the result.
    """

    def __init__(self, max_length: int = DEFAULT_MAX_EXPRESSION_LENGTH) -> None:
        self.max_length = max_length

    def evaluate(self, source: str, names: dict[str, Any]) -> Any:
        if not source or not source.strip():
            raise ExpressionError("Expression cannot be empty", source)
        if len(source) > self.max_length:
            raise ExpressionError(
                f"Expression too long ({len(source)} chars, max {self.max_length})", source
            )

        scope = dict(names)
        result: Any = None
        try:
            code = to_python_syntax(source)
            if not is_statement_block(code):
                return self._eval(join_lines(code), scope)

            for statement in split_statements(code):
                returned = _RETURN.match(statement)
                if returned:
                    body = returned.group(1).strip()
                    return self._eval(body, scope) if body else None

                assignment = _ASSIGNMENT.match(statement)
                if assignment:
                    scope[assignment.group(1)] = self._eval(assignment.group(2), scope)
                    result = None
                else:
                    result = self._eval(statement, scope)
        except ExpressionError:
            raise
        except Exception as e:
            raise ExpressionError(f"Evaluation error: {e}", source) from e
        return result

    def _eval(self, expression: str, scope: dict[str, Any]) -> Any:
        evaluator = _SandboxEval(functions=SAFE_FUNCTIONS, names=scope)
        return evaluator.eval(expression)


class ExpressionEngine:
    """Resolves references and evaluates composite expressions against a context."""

    def __init__(self, evaluator: ExpressionEvaluator | None = None) -> None:
        self.evaluator = evaluator or SafeExpressionEvaluator()

    def evaluate(
        self,
        expression: Any,
        context: ExecutionContext,
        current_node_id: str | None = None,
        names: dict[str, Any] | None = None,
        strict: bool = False,
    ) -> Any:
        """
        Evaluate a guard or input expression.

        A bare reference returns the referenced value untouched. Otherwise every
        reference is bound to a generated name (ref0, ref1, ...) and the rewritten
        source goes to the evaluator with copies of the bound values. Failures
        return None unless ``strict``.
        """
        if not isinstance(expression, str) or not expression.strip():
            return None

        source = apply_self_reference(expression, current_node_id)
        refs = find_references(source)

        if len(refs) == 1 and source.strip() == refs[0]:
            return resolve_reference(refs[0], context)

        var_names = {ref: f"ref{i}" for i, ref in enumerate(refs)}
        bindings: dict[str, Any] = dict(names or {})
        for ref, var_name in var_names.items():
            bindings[var_name] = resolve_reference(ref, context)
        # Sandbox code can call mutating methods, so it only sees copies.
        bindings = copy.deepcopy(bindings)
        rewritten = REFERENCE_PATTERN.sub(lambda m: var_names[m.group(0)], source)

        try:
            return self.evaluator.evaluate(rewritten, bindings)
        except Exception as e:
            if strict:
                if isinstance(e, ExpressionError):
                    raise
                raise ExpressionError(f"Evaluation error: {e}", expression) from e
            logger.debug("Expression evaluation failed: %s (expression: %s)", e, expression)
            return None

    def resolve(self, value: Any, context: ExecutionContext, current_node_id: str | None = None) -> Any:
        """
        Resolve every reference-valued string in a value.

        Handles strings, mappings, and sequences recursively; other values pass
        through unchanged.
        """
        if isinstance(value, str):
            if looks_like_reference(value):
                return self.evaluate(value, context, current_node_id)
            return value

        if isinstance(value, list):
            return [self.resolve(item, context, current_node_id) for item in value]

        if isinstance(value, tuple):
            return tuple(self.resolve(item, context, current_node_id) for item in value)

        if isinstance(value, dict):
            return {
                key: self.resolve(val, context, current_node_id) for key, val in value.items()
            }

        return value


# Singleton instance
expression_engine = ExpressionEngine()
