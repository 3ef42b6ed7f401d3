"""
Locator resolution: screen object + field selector -> normalized element handle.

A screen member can be:
- a plain locator / element handle (or a property returning one),
- a zero-argument factory (called, and awaited if it returns an awaitable),
- an indexed method ``title(nth)``: a parameterized locator factory. It is
  never collapsed to one locator for ``[all]``/``[any]``; elements are built
  per index and the element count comes from a count source.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from .config import ValidatorConfig
from .constants import MAX_LISTED_FIELDS
from .exceptions import (
    CountDiscoveryError,
    FieldNotFoundError,
    LocatorResolutionError,
    NoElementsError,
)
from .selectors import FieldSelector, SelectorIndex, parse_field_selector
from .templates import MISSING
from .utils import get_member, maybe_await, required_positional_count

if TYPE_CHECKING:
    from .backends.protocol import ElementBackend
    from .templates import TemplateResolver

logger = logging.getLogger(__name__)

Mode = Literal["single", "all", "any"]


@dataclass
class ResolvedLocator:
    locator: Any
    mode: Mode
    field: str
    index: SelectorIndex = None
    is_method_call: bool = False
    method: Callable[..., Any] | None = None
    count_of: str | None = None

    @property
    def label(self) -> str:
        return f"{self.field}[{self.index}]" if self.index is not None else self.field


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def known_fields(screen: Any, limit: int = MAX_LISTED_FIELDS) -> list[str]:
    """Public, non-method member names of a screen object (for error messages)."""
    names: list[str] = []
    if isinstance(screen, Mapping):
        names = [str(k) for k, v in screen.items() if not callable(v)]
    else:
        for cls in reversed(type(screen).__mro__):
            for name, attr in vars(cls).items():
                if isinstance(attr, property) and name not in names:
                    names.append(name)
        for name, value in getattr(screen, "__dict__", {}).items():
            if not callable(value) and name not in names:
                names.append(name)
    return [n for n in names if not n.startswith("_")][:limit]


class LocatorResolver:
    def __init__(
        self,
        backend: ElementBackend,
        templates: TemplateResolver,
        config: ValidatorConfig | None = None,
    ) -> None:
        self.backend = backend
        self.templates = templates
        self.config = config or ValidatorConfig()

    async def resolve(self, screen: Any, selector: str, data: Any = None) -> ResolvedLocator:
        parsed = parse_field_selector(selector, self.templates, data)
        return await self.resolve_parsed(screen, parsed)

    async def resolve_parsed(self, screen: Any, parsed: FieldSelector) -> ResolvedLocator:
        field, index = parsed.field, parsed.index

        member = get_member(screen, field)
        if member is MISSING or member is None:
            raise FieldNotFoundError(field, known_fields(screen))

        if callable(member):
            if required_positional_count(member) > 0:
                return await self._resolve_indexed_method(member, parsed)
            member = member()

        locator = await maybe_await(member)

        if index is None:
            return ResolvedLocator(locator=locator, mode="single", field=field)

        collection = self.backend.as_collection(locator)
        if collection is None:
            logger.info("%s is a single element, ignoring index [%s]", field, index)
            return ResolvedLocator(locator=locator, mode="single", field=field)

        if index == "first":
            element = await self.backend.first(collection, field)
        elif index == "last":
            element = await self.backend.last(collection, field)
        elif index in ("all", "any"):
            return ResolvedLocator(
                locator=collection, mode=index, field=field, index=index, count_of=parsed.count_of
            )
        else:
            element = await self.backend.element_at(collection, int(index), field)
        return ResolvedLocator(locator=element, mode="single", field=field, index=index)

    async def _resolve_indexed_method(self, method: Callable[..., Any], parsed: FieldSelector) -> ResolvedLocator:
        field, index = parsed.field, parsed.index
        if index is None:
            raise LocatorResolutionError(
                f'"{field}" is an indexed method; select an element with {field}[n], '
                f"{field}[first], {field}[last], {field}[all] or {field}[any]"
            )

        if index in ("all", "any"):
            logger.debug("Method %s(nth) with [%s] mode", field, index)
            return ResolvedLocator(
                locator=None,
                mode=index,
                field=field,
                index=index,
                is_method_call=True,
                method=method,
                count_of=parsed.count_of,
            )

        # -1 asks the method itself for its last element
        actual = 0 if index == "first" else -1 if index == "last" else int(index)
        logger.debug("Calling %s(%s) as method", field, actual)
        return ResolvedLocator(
            locator=await maybe_await(method(actual)),
            mode="single",
            field=field,
            index=index,
            is_method_call=True,
            method=method,
        )

    # ========== element counts ==========

    async def count_from_reference(self, screen: Any, ref: str) -> int:
        member = get_member(screen, ref)
        if member is MISSING or member is None:
            raise FieldNotFoundError(ref, known_fields(screen))
        if callable(member):
            member = member()
        value = await maybe_await(member)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        collection = self.backend.as_collection(value)
        return await self.backend.count(collection if collection is not None else value)

    async def method_element_count(self, screen: Any, method_name: str, count_of: str | None = None) -> int:
        """
        Element count for an indexed method.

        Precedence: explicit ``count_of`` reference, count-method naming
        conventions, generic-locator naming conventions, configured fallback.
        """
        if count_of:
            count = await self.count_from_reference(screen, count_of)
            logger.debug("Count for %s via %s -> %d", method_name, count_of, count)
            return count

        cap = _capitalize(method_name)
        for name in (f"{method_name}Count", f"get{cap}Count", f"count{cap}s", f"{method_name}sCount"):
            member = get_member(screen, name)
            if callable(member):
                count = await maybe_await(member())
                logger.info("Found count via %s() -> %s", name, count)
                return int(count)

        for name in (f"{method_name}Generic", f"{method_name}s", f"all{cap}s"):
            member = get_member(screen, name)
            if member is MISSING or member is None:
                continue
            if callable(member):
                if required_positional_count(member) > 0:
                    continue
                member = member()
            loc = await maybe_await(member)
            if loc is None:
                continue
            collection = self.backend.as_collection(loc)
            count = await self.backend.count(collection if collection is not None else loc)
            logger.info("Found count via %s generic locator -> %d", name, count)
            return count

        if self.config.strict_method_count:
            raise CountDiscoveryError(method_name)
        logger.warning(
            "Could not determine count for %s. Using default of %d.",
            method_name,
            self.config.fallback_method_count,
        )
        return self.config.fallback_method_count

    async def collection_size(self, screen: Any, resolved: ResolvedLocator) -> int:
        if resolved.is_method_call:
            return await self.method_element_count(screen, resolved.field, resolved.count_of)
        return await self.backend.count(resolved.locator)

    # ========== element access for all / any ==========

    async def iter_elements(
        self,
        screen: Any,
        resolved: ResolvedLocator,
        *,
        allow_empty: bool = False,
        detail: str | None = None,
    ) -> AsyncIterator[tuple[str, Any]]:
        """Yield ``(label, element)`` for every element of an [all] selector."""
        if resolved.is_method_call and resolved.method is not None:
            count = await self.method_element_count(screen, resolved.field, resolved.count_of)
            if count == 0 and not allow_empty:
                raise NoElementsError(resolved.field, "all", detail)
            logger.debug("Checking %d %s elements via method", count, resolved.field)
            for i in range(count):
                yield f"{resolved.field}({i})", await maybe_await(resolved.method(i))
            return

        elements = await self.backend.all_elements(resolved.locator)
        if not elements and not allow_empty:
            raise NoElementsError(resolved.field, "all", detail)
        for i, element in enumerate(elements):
            yield f"{resolved.field}[{i}]", element

    async def pick_random(
        self,
        screen: Any,
        resolved: ResolvedLocator,
        *,
        allow_empty: bool = False,
        detail: str | None = None,
    ) -> tuple[str, Any] | None:
        """Pick one element of an [any] selector uniformly at random."""
        count = await self.collection_size(screen, resolved)
        if count == 0:
            if allow_empty:
                return None
            raise NoElementsError(resolved.field, "any", detail)

        idx = self.config.random_index(count)
        logger.debug("Random index: %d (of %d)", idx, count)
        if resolved.is_method_call and resolved.method is not None:
            return f"{resolved.field}({idx})", await maybe_await(resolved.method(idx))
        element = await self.backend.element_at(resolved.locator, idx, resolved.field)
        return f"{resolved.field}[{idx}]", element
