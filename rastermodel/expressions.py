"""Parse scalar placeholder assignments into tensors.

An expression holds one or more whitespace-separated ``name=value``
assignments, e.g. ``"drop_rate=0.5 learning_rate=0.002 toto=true"``. Values
are integer, float, or boolean literals, or a parenthesized comma-separated
tuple of one literal kind such as ``(1,2,3)``.
"""

import logging, re
from typing import Iterable

import numpy as np

from rastermodel.errors import ConfigurationError


log = logging.getLogger(__name__)

_ASSIGNMENT_RE = re.compile(r"(?P<name>[A-Za-z_][\w:/.\-]*)\s*=\s*(?P<value>\([^()]*\)|[^\s()=]+)")
_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?")
_BOOL_WORDS = {"true": True, "false": False}
_INT32 = np.iinfo(np.int32)
_FLOAT32_MAX = float(np.finfo(np.float32).max)


class ExpressionError(ConfigurationError):
    """Malformed placeholder expression."""


def _literal_kind(token: str) -> str:
    """Classify a literal token as 'bool', 'int' or 'float'."""
    if token.lower() in _BOOL_WORDS:
        return "bool"
    if _INT_RE.fullmatch(token):
        return "int"
    if _FLOAT_RE.fullmatch(token):
        return "float"
    raise ExpressionError(f"cannot parse literal '{token}'")


def _to_array(tokens: list[str], kind: str) -> np.ndarray:
    if kind == "bool":
        return np.array([_BOOL_WORDS[token.lower()] for token in tokens], dtype=np.bool_)
    if kind == "int":
        values = [int(token) for token in tokens]
        for token, value in zip(tokens, values):
            if not _INT32.min <= value <= _INT32.max:
                raise ExpressionError(f"integer literal '{token}' is out of int32 range")
        return np.array(values, dtype=np.int32)
    values = [float(token) for token in tokens]
    for token, value in zip(tokens, values):
        # Also catches finite doubles that would round to inf as float32.
        if not abs(value) <= _FLOAT32_MAX:
            raise ExpressionError(f"float literal '{token}' is out of float32 range")
    return np.array(values, dtype=np.float32)


def _parse_value(raw_value: str) -> np.ndarray:
    """Convert one literal or tuple string into a numpy tensor."""
    if raw_value.startswith("("):
        tokens = [token.strip() for token in raw_value[1:-1].split(",")]
        if not tokens or any(not token for token in tokens):
            raise ExpressionError(f"empty element in tuple '{raw_value}'")
        kinds = {_literal_kind(token) for token in tokens}
        # Mixed int/float tuples promote to float; bools never mix.
        if kinds == {"int", "float"}:
            kinds = {"float"}
        if len(kinds) != 1:
            raise ExpressionError(f"tuple '{raw_value}' mixes literal kinds {sorted(kinds)}")
        return _to_array(tokens, kinds.pop())

    return _to_array([raw_value], _literal_kind(raw_value)).reshape(())


def parse_expression(expr: str) -> list[tuple[str, np.ndarray]]:
    """Parse every assignment in one expression string, in order."""
    assert isinstance(expr, str), f"expression must be a string; got {type(expr)!r}"
    assignments = []
    cursor = 0
    for match in _ASSIGNMENT_RE.finditer(expr):
        leftover = expr[cursor : match.start()].strip()
        if leftover:
            raise ExpressionError(f"unexpected text '{leftover}' in expression '{expr}'")
        assignments.append((match.group("name"), _parse_value(match.group("value"))))
        cursor = match.end()

    leftover = expr[cursor:].strip()
    if leftover:
        raise ExpressionError(f"unexpected text '{leftover}' in expression '{expr}'")
    if not assignments:
        raise ExpressionError(f"no 'name=value' assignment found in expression '{expr}'")
    return assignments


def expression_to_tensor(expr: str) -> tuple[str, np.ndarray]:
    """Parse a single ``name=value`` assignment."""
    assignments = parse_expression(expr)
    if len(assignments) != 1:
        raise ExpressionError(f"expected one assignment, got {len(assignments)} in '{expr}'")
    return assignments[0]


def expressions_to_placeholders(exprs: str | Iterable[str]) -> dict[str, np.ndarray]:
    """Build a user placeholder dictionary from one or more expression strings."""
    if isinstance(exprs, str):
        exprs = [exprs]
    placeholders: dict[str, np.ndarray] = {}
    for expr in exprs:
        for name, tensor in parse_expression(expr):
            if name in placeholders:
                raise ExpressionError(f"placeholder '{name}' assigned more than once")
            placeholders[name] = tensor
    log.debug(f"parsed {len(placeholders)} user placeholders: {sorted(placeholders)}")
    return placeholders
