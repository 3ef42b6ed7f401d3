"""
UI-automation backends.

Two structurally different driver shapes are supported behind one
ElementBackend capability interface:

- PlaywrightBackend: lazy, chainable async locators (screen objects expose ``page``)
- WebDriverBackend: eagerly-resolved element handles and lists (Selenium, Appium)

The backend is picked once per validation run:

    from screenassert.backends import select_backend

    backend = select_backend(screen)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..constants import DEFAULT_VISIBLE_TIMEOUT_MS
from .playwright_backend import PlaywrightBackend
from .protocol import BackendName, ElementBackend
from .webdriver_backend import WebDriverBackend


def is_playwright_screen(screen: Any) -> bool:
    """Playwright-shaped screen objects carry a ``page`` member."""
    if isinstance(screen, Mapping):
        return screen.get("page") is not None
    return getattr(screen, "page", None) is not None


def select_backend(screen: Any, *, visible_timeout_ms: int = DEFAULT_VISIBLE_TIMEOUT_MS) -> ElementBackend:
    if is_playwright_screen(screen):
        return PlaywrightBackend(visible_timeout_ms=visible_timeout_ms)
    return WebDriverBackend()


__all__ = [
    "BackendName",
    "ElementBackend",
    "PlaywrightBackend",
    "WebDriverBackend",
    "is_playwright_screen",
    "select_backend",
]
