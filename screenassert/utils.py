from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Any

from .templates import MISSING


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable (driver calls may be sync or async)."""
    if inspect.isawaitable(value):
        return await value
    return value


def get_member(obj: Any, name: str) -> Any:
    """Look up a member by attribute, or by key for mapping-shaped screens. Returns MISSING."""
    if isinstance(obj, Mapping):
        return obj.get(name, MISSING)
    return getattr(obj, name, MISSING)


def required_positional_count(fn: Any) -> int:
    """Number of positional parameters ``fn`` requires (bound ``self`` excluded)."""
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return 0
    return sum(
        1
        for p in sig.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    )
