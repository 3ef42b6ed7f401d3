"""
Catalog of named checks and their error policy.

Every check name maps to a CheckSpec tagged with a CheckCategory; the
soft-fail decision is a property of the tag:

- GETTER: returns a value, any error propagates.
- BOOLEAN: returns True/False; an internal error becomes False when the
  result is being stored (storeAs), otherwise it propagates.
- HARD: matcher assertion; a mismatch always raises.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Sized
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import AssertionFailure, UnknownAssertionTypeError

if TYPE_CHECKING:
    from .backends.protocol import ElementBackend

logger = logging.getLogger(__name__)


class CheckCategory(str, enum.Enum):
    GETTER = "getter"
    BOOLEAN = "boolean"
    HARD = "hard"


@dataclass(frozen=True)
class CheckSpec:
    name: str
    category: CheckCategory
    element_subject: bool
    """True when a function-assertion subject is treated as an element handle."""

    @property
    def soft_fails_when_stored(self) -> bool:
        return self.category is CheckCategory.BOOLEAN


def _spec(name: str, category: CheckCategory, element_subject: bool) -> tuple[str, CheckSpec]:
    return name, CheckSpec(name, category, element_subject)


CHECKS: dict[str, CheckSpec] = dict(
    [
        # getters
        _spec("getValue", CheckCategory.GETTER, True),
        _spec("getText", CheckCategory.GETTER, True),
        _spec("getCount", CheckCategory.GETTER, True),
        _spec("getAttribute", CheckCategory.GETTER, True),
        # boolean checks
        _spec("isVisible", CheckCategory.BOOLEAN, True),
        _spec("isEnabled", CheckCategory.BOOLEAN, True),
        _spec("isChecked", CheckCategory.BOOLEAN, True),
        _spec("hasText", CheckCategory.BOOLEAN, True),
        # element matchers
        _spec("toBeVisible", CheckCategory.HARD, True),
        _spec("toBeHidden", CheckCategory.HARD, True),
        _spec("toContainText", CheckCategory.HARD, True),
        _spec("toHaveText", CheckCategory.HARD, True),
        # value matchers
        _spec("toBe", CheckCategory.HARD, False),
        _spec("equals", CheckCategory.HARD, False),
        _spec("toEqual", CheckCategory.HARD, False),
        _spec("toContain", CheckCategory.HARD, False),
        _spec("toMatch", CheckCategory.HARD, False),
        _spec("toBeTruthy", CheckCategory.HARD, False),
        _spec("toBeFalsy", CheckCategory.HARD, False),
        _spec("toBeGreaterThan", CheckCategory.HARD, False),
        _spec("toBeGreaterThanOrEqual", CheckCategory.HARD, False),
        _spec("toBeLessThan", CheckCategory.HARD, False),
        _spec("toBeLessThanOrEqual", CheckCategory.HARD, False),
        _spec("toHaveLength", CheckCategory.HARD, False),
        _spec("toBeDefined", CheckCategory.HARD, False),
        _spec("toBeUndefined", CheckCategory.HARD, False),
        _spec("toBeNull", CheckCategory.HARD, False),
    ]
)


def get_check(name: str | None, context: str = "assertion") -> CheckSpec:
    spec = CHECKS.get(name or "")
    if spec is None:
        raise UnknownAssertionTypeError(name, context)
    return spec


# ========== value matchers ==========


def _as_number(value: Any, label: str) -> float:
    if isinstance(value, bool):
        raise AssertionFailure(f"{label}: expected a number, got {value!r}", actual=value)
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        raise AssertionFailure(f"{label}: expected a number, got {value!r}", actual=value) from None


def _pattern(expected: Any) -> re.Pattern[str]:
    if isinstance(expected, re.Pattern):
        return expected
    return re.compile(str(expected))


def compare_values(matcher: str, actual: Any, expected: Any = None, label: str = "value") -> None:
    """
    Apply a value matcher, raising AssertionFailure on mismatch.

    ``None`` stands in for both null and undefined (toBeDefined fails on None).
    """

    def fail(description: str) -> AssertionFailure:
        return AssertionFailure(
            f"Expected {label} {description}, got {actual!r}",
            expected=expected,
            actual=actual,
            operator=matcher,
        )

    if matcher in ("toBe", "equals", "toEqual"):
        if actual != expected:
            raise fail(f"to {'equal' if matcher == 'toEqual' else 'be'} {expected!r}")
    elif matcher == "toContain":
        if actual is None:
            raise fail(f"to contain {expected!r}")
        if isinstance(actual, str):
            if str(expected) not in actual:
                raise fail(f"to contain {expected!r}")
        elif expected not in actual:
            raise fail(f"to contain {expected!r}")
    elif matcher == "toMatch":
        if actual is None or not _pattern(expected).search(str(actual)):
            raise fail(f"to match {expected!r}")
    elif matcher == "toBeTruthy":
        if not actual:
            raise fail("to be truthy")
    elif matcher == "toBeFalsy":
        if actual:
            raise fail("to be falsy")
    elif matcher in ("toBeGreaterThan", "toBeGreaterThanOrEqual", "toBeLessThan", "toBeLessThanOrEqual"):
        left, right = _as_number(actual, label), _as_number(expected, label)
        ok = {
            "toBeGreaterThan": left > right,
            "toBeGreaterThanOrEqual": left >= right,
            "toBeLessThan": left < right,
            "toBeLessThanOrEqual": left <= right,
        }[matcher]
        if not ok:
            symbol = {
                "toBeGreaterThan": ">",
                "toBeGreaterThanOrEqual": ">=",
                "toBeLessThan": "<",
                "toBeLessThanOrEqual": "<=",
            }[matcher]
            raise fail(f"{symbol} {expected!r}")
    elif matcher == "toHaveLength":
        if not isinstance(actual, Sized) or len(actual) != _as_number(expected, label):
            raise fail(f"to have length {expected!r}")
    elif matcher == "toBeDefined":
        if actual is None:
            raise fail("to be defined")
    elif matcher in ("toBeUndefined", "toBeNull"):
        if actual is not None:
            raise fail("to be undefined" if matcher == "toBeUndefined" else "to be null")
    else:
        raise UnknownAssertionTypeError(matcher, "matcher")


# ========== element checks ==========


async def run_element_check(
    backend: ElementBackend,
    element: Any,
    spec: CheckSpec,
    expected: Any,
    label: str,
) -> Any:
    """Run one check against an element handle; returns the check's value."""
    name = spec.name

    if name == "getValue":
        result = await backend.get_value(element)
    elif name == "getText":
        result = await backend.get_text(element)
    elif name == "getCount":
        collection = backend.as_collection(element)
        result = await backend.count(collection if collection is not None else element)
    elif name == "getAttribute":
        result = await backend.get_attribute(element, str(expected))
    elif name == "isVisible":
        result = await backend.is_visible(element)
    elif name == "isEnabled":
        result = await backend.is_enabled(element)
    elif name == "isChecked":
        result = await backend.is_checked(element)
    elif name == "hasText":
        text = await backend.get_text(element)
        result = bool(text) and str(expected) in text
    elif name == "toBeVisible":
        await backend.expect_visible(element, label)
        result = True
    elif name == "toBeHidden":
        await backend.expect_hidden(element, label)
        result = True
    elif name == "toContainText":
        await backend.expect_contains_text(element, str(expected), label)
        result = True
    elif name == "toHaveText":
        await backend.expect_text(element, str(expected), label)
        result = True
    else:
        # value matchers run against the element's text
        text = await backend.get_text(element)
        compare_values(name, text, expected, label=label)
        result = True

    logger.info("%s %s -> %r", label, name, result)
    return result


async def run_value_check(
    backend: ElementBackend,
    subject: Any,
    spec: CheckSpec,
    expected: Any,
    label: str,
) -> Any:
    """Run one check against a function result (element handle or plain value)."""
    if spec.element_subject:
        return await run_element_check(backend, subject, spec, expected, label)
    compare_values(spec.name, subject, expected, label=label)
    logger.info("%s %s %r (got: %r)", label, spec.name, expected, subject)
    return True
