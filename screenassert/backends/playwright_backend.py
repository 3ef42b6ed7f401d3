"""
Playwright backend: chainable async locators with native first/last/nth/all/count.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from playwright.async_api import expect

from ..constants import DEFAULT_VISIBLE_TIMEOUT_MS

if TYPE_CHECKING:
    from playwright.async_api import Locator

logger = logging.getLogger(__name__)


class PlaywrightBackend:
    """
    ElementBackend over ``playwright.async_api.Locator``.

    Locators are lazy, so navigation never fails here; out-of-range indices
    surface when a check runs against the locator.
    """

    name = "playwright"

    def __init__(self, visible_timeout_ms: int = DEFAULT_VISIBLE_TIMEOUT_MS) -> None:
        self.visible_timeout_ms = visible_timeout_ms

    def as_collection(self, handle: Locator) -> Locator:
        return handle

    async def count(self, collection: Locator | None) -> int:
        if collection is None:
            return 0
        return await collection.count()

    async def first(self, collection: Locator, field: str) -> Locator:
        return collection.first

    async def last(self, collection: Locator, field: str) -> Locator:
        return collection.last

    async def element_at(self, collection: Locator, index: int, field: str) -> Locator:
        return collection.nth(index)

    async def all_elements(self, collection: Locator) -> list[Locator]:
        return await collection.all()

    async def exists(self, element: Locator | None) -> bool:
        if element is None:
            return False
        return await element.count() > 0

    async def is_visible(self, element: Locator) -> bool:
        return await element.is_visible()

    async def is_enabled(self, element: Locator) -> bool:
        return await element.is_enabled()

    async def is_checked(self, element: Locator) -> bool:
        return await element.is_checked()

    async def get_text(self, element: Locator) -> str | None:
        return await element.text_content()

    async def get_value(self, element: Locator) -> Any:
        return await element.input_value()

    async def get_attribute(self, element: Locator, name: str) -> Any:
        return await element.get_attribute(name)

    async def expect_visible(self, element: Locator, label: str) -> None:
        await expect(element).to_be_visible(timeout=self.visible_timeout_ms)

    async def expect_hidden(self, element: Locator, label: str) -> None:
        if not await self.exists(element):
            logger.info("%s doesn't exist (counts as hidden)", label)
            return
        await expect(element).not_to_be_visible()

    async def expect_text(self, element: Locator, text: str, label: str) -> None:
        await expect(element).to_have_text(text, timeout=self.visible_timeout_ms)

    async def expect_contains_text(self, element: Locator, text: str, label: str) -> None:
        await expect(element).to_contain_text(text, timeout=self.visible_timeout_ms)
