"""
WebDriver backend: eagerly-resolved element handles (Selenium / Appium).

Collections are plain lists (``find_elements``), so first/last/nth/count are
emulated with list indexing and ``len``. Element methods may be sync
(Selenium) or async (async Appium wrappers); both are accepted.
"""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import AssertionFailure, IndexOutOfBoundsError, NoElementsError
from ..templates import MISSING
from ..utils import maybe_await

logger = logging.getLogger(__name__)


def _is_array_like(handle: Any) -> bool:
    if isinstance(handle, (list, tuple)):
        return True
    if isinstance(handle, (str, bytes, dict)):
        return False
    return hasattr(handle, "__len__") and hasattr(handle, "__getitem__")


async def _call(element: Any, method: str, *args: Any) -> Any:
    fn = getattr(element, method)
    return await maybe_await(fn(*args))


class WebDriverBackend:
    name = "webdriver"

    def as_collection(self, handle: Any) -> list[Any] | None:
        if _is_array_like(handle):
            return list(handle)
        return None

    async def count(self, collection: Any) -> int:
        if collection is None:
            return 0
        if _is_array_like(collection):
            return len(collection)
        return 1

    async def first(self, collection: list[Any], field: str) -> Any:
        if not collection:
            raise NoElementsError(field, "first")
        return collection[0]

    async def last(self, collection: list[Any], field: str) -> Any:
        if not collection:
            raise NoElementsError(field, "last")
        return collection[-1]

    async def element_at(self, collection: Any, index: int, field: str) -> Any:
        if not _is_array_like(collection):
            # Single element: only index 0 addresses it
            if index == 0 and collection is not None:
                return collection
            raise IndexOutOfBoundsError(field, index, 1 if collection is not None else 0)
        if index < 0 or index >= len(collection) or collection[index] is None:
            raise IndexOutOfBoundsError(field, index, len(collection))
        return collection[index]

    async def all_elements(self, collection: Any) -> list[Any]:
        if collection is None:
            return []
        if _is_array_like(collection):
            return list(collection)
        return [collection]

    async def exists(self, element: Any) -> bool:
        if element is None:
            return False
        checker = getattr(element, "is_existing", None)
        if callable(checker):
            return bool(await maybe_await(checker()))
        return True

    async def is_visible(self, element: Any) -> bool:
        return bool(await _call(element, "is_displayed"))

    async def is_enabled(self, element: Any) -> bool:
        return bool(await _call(element, "is_enabled"))

    async def is_checked(self, element: Any) -> bool:
        return bool(await _call(element, "is_selected"))

    async def get_text(self, element: Any) -> str | None:
        getter = getattr(element, "get_text", MISSING)
        if callable(getter):
            return await maybe_await(getter())
        text = getattr(element, "text")
        if callable(text):
            text = text()
        return await maybe_await(text)

    async def get_value(self, element: Any) -> Any:
        getter = getattr(element, "get_value", MISSING)
        if callable(getter):
            return await maybe_await(getter())
        return await _call(element, "get_attribute", "value")

    async def get_attribute(self, element: Any, name: str) -> Any:
        return await _call(element, "get_attribute", name)

    async def expect_visible(self, element: Any, label: str) -> None:
        if element is None:
            raise AssertionFailure(f"{label} - element not found", expected=True, actual=None)
        displayed = await self.is_visible(element)
        if not displayed:
            raise AssertionFailure(
                f"Expected {label} to be displayed",
                expected=True,
                actual=displayed,
                operator="toBeDisplayed",
            )

    async def expect_hidden(self, element: Any, label: str) -> None:
        if not await self.exists(element):
            logger.info("%s doesn't exist (counts as hidden)", label)
            return
        displayed = await self.is_visible(element)
        if displayed:
            raise AssertionFailure(
                f"Expected {label} not to be displayed",
                expected=False,
                actual=displayed,
                operator="not.toBeDisplayed",
            )

    async def expect_text(self, element: Any, text: str, label: str) -> None:
        actual = await self.get_text(element)
        if actual != text:
            raise AssertionFailure(
                f'Expected {label} to have text "{text}", got "{actual}"',
                expected=text,
                actual=actual,
                operator="toHaveText",
            )

    async def expect_contains_text(self, element: Any, text: str, label: str) -> None:
        actual = await self.get_text(element)
        if actual is None or text not in actual:
            raise AssertionFailure(
                f'Expected {label} to contain "{text}", got "{actual}"',
                expected=text,
                actual=actual,
                operator="toContainText",
            )
