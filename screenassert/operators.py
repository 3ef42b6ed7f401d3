"""
Operators for data-assertion blocks (pure value comparisons, no UI access).
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Sized
from typing import Any

from .exceptions import AssertionFailure, UnknownOperatorError

_REGEX_LITERAL_RE = re.compile(r"^/(.*)/([a-z]*)$", re.DOTALL)
_FLAG_MAP = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


def to_number(value: Any) -> float:
    """Numeric coercion; anything unparseable becomes NaN (every comparison with it fails)."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return math.nan
    try:
        return float(str(value).strip() or "0")
    except ValueError:
        return math.nan


def compile_pattern(value: Any) -> re.Pattern[str]:
    """Compile ``value`` as a regex, accepting ``/pattern/flags`` literals."""
    if isinstance(value, re.Pattern):
        return value
    text = str(value)
    literal = _REGEX_LITERAL_RE.match(text)
    if literal:
        flags = 0
        for flag in literal.group(2):
            flags |= _FLAG_MAP.get(flag, 0)
        return re.compile(literal.group(1), flags)
    return re.compile(text)


def _length(value: Any) -> float:
    return float(len(value)) if isinstance(value, Sized) else math.nan


def _same_value(left: Any, right: Any) -> bool:
    """Equality that keeps booleans distinct from numbers (True != 1)."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


OPERATORS: dict[str, tuple[str, Callable[[Any, Any], bool]]] = {
    "equals": ("==", _same_value),
    "notEquals": ("!=", lambda left, right: not _same_value(left, right)),
    "contains": ("contains", lambda left, right: str(right) in str(left)),
    "notContains": ("does not contain", lambda left, right: str(right) not in str(left)),
    "greaterThan": (">", lambda left, right: to_number(left) > to_number(right)),
    "lessThan": ("<", lambda left, right: to_number(left) < to_number(right)),
    "greaterOrEqual": (">=", lambda left, right: to_number(left) >= to_number(right)),
    "lessOrEqual": ("<=", lambda left, right: to_number(left) <= to_number(right)),
    "matches": ("matches", lambda left, right: compile_pattern(right).search(str(left)) is not None),
    "startsWith": ("starts with", lambda left, right: str(left).startswith(str(right))),
    "endsWith": ("ends with", lambda left, right: str(left).endswith(str(right))),
    "isDefined": ("is defined", lambda left, _right: left is not None),
    "isUndefined": ("is undefined", lambda left, _right: left is None),
    "isTruthy": ("is truthy", lambda left, _right: bool(left)),
    "isFalsy": ("is falsy", lambda left, _right: not left),
    "lengthEquals": ("length ==", lambda left, right: _length(left) == to_number(right)),
    "lengthGreaterThan": ("length >", lambda left, right: _length(left) > to_number(right)),
}

UNARY_OPERATORS = frozenset({"isDefined", "isUndefined", "isTruthy", "isFalsy"})


def apply_operator(operator: str, left: Any, right: Any = None, label: str | None = None) -> None:
    """
    Evaluate ``left <operator> right``.

    Raises:
        UnknownOperatorError: operator is not in OPERATORS
        AssertionFailure: comparison is false; the message shows both operands
    """
    entry = OPERATORS.get(operator)
    if entry is None:
        raise UnknownOperatorError(operator)

    symbol, predicate = entry
    if predicate(left, right):
        return

    if operator in UNARY_OPERATORS:
        detail = f"expected {left!r} {symbol}"
    else:
        detail = f"expected {left!r} {symbol} {right!r}"
    prefix = f"{label}: " if label else ""
    raise AssertionFailure(
        f"{prefix}{detail} (left: {left!r}, right: {right!r})",
        expected=right,
        actual=left,
        operator=operator,
    )
