"""
Element capability interface shared by both UI-automation backends.

The interpreter never touches a driver API directly: locator resolution and
every check go through an ElementBackend chosen once per validation run.
"""

from __future__ import annotations

from typing import Any, Literal, Protocol, runtime_checkable

BackendName = Literal["playwright", "webdriver"]


@runtime_checkable
class ElementBackend(Protocol):
    """
    Normalized element operations.

    ``collection`` arguments are whatever ``as_collection`` returned for a
    field; ``element`` arguments are single handles.
    """

    name: BackendName

    # ---- navigation ----
    def as_collection(self, handle: Any) -> Any | None:
        """Return an indexable collection, or None if ``handle`` is a single element."""
        ...

    async def count(self, collection: Any) -> int:
        ...

    async def first(self, collection: Any, field: str) -> Any:
        ...

    async def last(self, collection: Any, field: str) -> Any:
        ...

    async def element_at(self, collection: Any, index: int, field: str) -> Any:
        ...

    async def all_elements(self, collection: Any) -> list[Any]:
        ...

    # ---- queries ----
    async def exists(self, element: Any) -> bool:
        ...

    async def is_visible(self, element: Any) -> bool:
        ...

    async def is_enabled(self, element: Any) -> bool:
        ...

    async def is_checked(self, element: Any) -> bool:
        ...

    async def get_text(self, element: Any) -> str | None:
        ...

    async def get_value(self, element: Any) -> Any:
        ...

    async def get_attribute(self, element: Any, name: str) -> Any:
        ...

    # ---- hard assertions (raise AssertionError on mismatch) ----
    async def expect_visible(self, element: Any, label: str) -> None:
        ...

    async def expect_hidden(self, element: Any, label: str) -> None:
        ...

    async def expect_text(self, element: Any, text: str, label: str) -> None:
        ...

    async def expect_contains_text(self, element: Any, text: str, label: str) -> None:
        ...
