from __future__ import annotations

import pytest

from screenassert.backends import WebDriverBackend
from screenassert.checks import (
    CHECKS,
    CheckCategory,
    compare_values,
    get_check,
    run_element_check,
    run_value_check,
)
from screenassert.exceptions import AssertionFailure, UnknownAssertionTypeError


class FakeElement:
    def __init__(self, text: str = "", displayed: bool = True, value: str = "", attrs: dict | None = None) -> None:
        self.text = text
        self._displayed = displayed
        self._value = value
        self._attrs = attrs or {}

    def is_displayed(self) -> bool:
        return self._displayed

    def is_enabled(self) -> bool:
        return True

    def is_selected(self) -> bool:
        return False

    def get_attribute(self, name: str):
        if name == "value":
            return self._value
        return self._attrs.get(name)


def test_categories() -> None:
    assert get_check("getText").category is CheckCategory.GETTER
    assert get_check("isVisible").category is CheckCategory.BOOLEAN
    assert get_check("toBe").category is CheckCategory.HARD
    assert get_check("isVisible").soft_fails_when_stored
    assert not get_check("toBeVisible").soft_fails_when_stored
    assert not get_check("getValue").soft_fails_when_stored
    assert all(spec.name == name for name, spec in CHECKS.items())


def test_unknown_check_name() -> None:
    with pytest.raises(UnknownAssertionTypeError, match="Unknown expectation type: toWobble"):
        get_check("toWobble", "expectation")


@pytest.mark.parametrize(
    "matcher,actual,expected",
    [
        ("toBe", 3, 3),
        ("toEqual", {"a": 1}, {"a": 1}),
        ("toContain", "hello", "ell"),
        ("toContain", [1, 2], 2),
        ("toMatch", "abc123", r"\d+"),
        ("toBeTruthy", 1, None),
        ("toBeFalsy", 0, None),
        ("toBeGreaterThan", 5, 3),
        ("toBeGreaterThanOrEqual", 3, 3),
        ("toBeLessThan", "2", 3),
        ("toBeLessThanOrEqual", 3, 3),
        ("toHaveLength", [1, 2], 2),
        ("toBeDefined", 0, None),
        ("toBeUndefined", None, None),
        ("toBeNull", None, None),
    ],
)
def test_compare_values_pass(matcher: str, actual, expected) -> None:
    compare_values(matcher, actual, expected)


def test_compare_values_failure_keeps_both_sides() -> None:
    with pytest.raises(AssertionFailure) as exc_info:
        compare_values("toBe", "Paris", "Rome", label="city()")
    assert exc_info.value.actual == "Paris"
    assert exc_info.value.expected == "Rome"
    assert "city()" in str(exc_info.value)


@pytest.mark.asyncio
async def test_element_checks_on_webdriver_handles() -> None:
    backend = WebDriverBackend()
    element = FakeElement(text="Welcome back", value="ada@example.com", attrs={"role": "button"})

    assert await run_element_check(backend, element, get_check("getText"), None, "el") == "Welcome back"
    assert await run_element_check(backend, element, get_check("getValue"), None, "el") == "ada@example.com"
    assert await run_element_check(backend, element, get_check("getAttribute"), "role", "el") == "button"
    assert await run_element_check(backend, element, get_check("isVisible"), None, "el") is True
    assert await run_element_check(backend, element, get_check("isChecked"), None, "el") is False
    assert await run_element_check(backend, element, get_check("hasText"), "Welcome", "el") is True
    assert await run_element_check(backend, element, get_check("toContainText"), "back", "el") is True
    assert await run_element_check(backend, element, get_check("toMatch"), "^Wel", "el") is True

    with pytest.raises(AssertionFailure):
        await run_element_check(backend, element, get_check("toHaveText"), "Goodbye", "el")


@pytest.mark.asyncio
async def test_value_check_uses_plain_comparison_for_value_matchers() -> None:
    backend = WebDriverBackend()
    assert await run_value_check(backend, 7, get_check("toBeGreaterThan"), 3, "total()") is True
    with pytest.raises(AssertionFailure):
        await run_value_check(backend, [1], get_check("toHaveLength"), 2, "items()")

    element = FakeElement(text="Hi")
    assert await run_value_check(backend, element, get_check("getText"), None, "greeting()") == "Hi"
