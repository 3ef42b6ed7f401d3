"""
Registry of custom-code callbacks.

A ``custom-code`` block does not carry executable source; it names a
callback registered here (``handler``, falling back to ``code`` and then the
block ``id``). The callback receives one CustomCodeContext whose fields are
the full set of bindings it may use.

    registry = CustomCodeRegistry()

    @registry.block("accept-cookies")
    async def accept_cookies(ctx: CustomCodeContext) -> None:
        await ctx.screen.acceptCookies()
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .models import Block
    from .store import VariableStore
    from .validator import ImplicationValidator


@dataclass
class CustomCodeContext:
    page: Any
    """Driver handle: ``screen.page`` for Playwright screens, else the screen itself."""
    screen: Any
    test_data: Any
    expect: Callable[..., Any]
    """Playwright's ``expect`` (element matchers)."""
    compare: Callable[..., None]
    """Value matcher: ``compare("toBe", actual, expected)``."""
    store: VariableStore
    validator: ImplicationValidator
    block: Block


CustomCodeCallback = Callable[[CustomCodeContext], Union[None, Awaitable[None]]]


class CustomCodeRegistry:
    def __init__(self) -> None:
        self._callbacks: dict[str, CustomCodeCallback] = {}

    def register(self, key: str, callback: CustomCodeCallback) -> None:
        if not key:
            raise ValueError("custom code key is required")
        if not callable(callback):
            raise TypeError(f"custom code callback for {key!r} is not callable")
        self._callbacks[key] = callback

    def block(self, key: str) -> Callable[[CustomCodeCallback], CustomCodeCallback]:
        """Decorator form of register()."""

        def _decorator(fn: CustomCodeCallback) -> CustomCodeCallback:
            self.register(key, fn)
            return fn

        return _decorator

    def get(self, key: str | None) -> CustomCodeCallback | None:
        if not key:
            return None
        return self._callbacks.get(key)

    def list(self) -> list[str]:
        return list(self._callbacks)

    def __contains__(self, key: object) -> bool:
        return key in self._callbacks

    def __len__(self) -> int:
        return len(self._callbacks)
