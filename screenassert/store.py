from __future__ import annotations

import json
import logging
from collections.abc import MutableMapping
from typing import Any

logger = logging.getLogger(__name__)


def _preview(value: Any, limit: int = 80) -> str:
    if isinstance(value, (dict, list, tuple)):
        try:
            text = json.dumps(value, default=str)
        except (TypeError, ValueError):
            text = repr(value)
        return text[:limit] + ("..." if len(text) > limit else "")
    return repr(value)


class VariableStore:
    """
    In-memory symbol table for values captured during a validation (storeAs).

    Writes are last-write-wins. A write may also be mirrored into a caller
    supplied mapping (usually the test data object) so the value outlives the
    store itself.

    Not safe for concurrent validations: two runs sharing one store see each
    other's writes.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def store(
        self,
        key: str,
        value: Any,
        *,
        persist_to: MutableMapping[str, Any] | None = None,
        persist: bool = True,
    ) -> None:
        """
        Store ``value`` under ``key``.

        Args:
            key: Variable name
            value: Any resolved value (scalar, list, dict, bool)
            persist_to: Mapping that also receives the value when ``persist`` is true
            persist: Set False to keep the value out of ``persist_to``
        """
        self._values[key] = value
        logger.info("Stored: %s = %s", key, _preview(value))

        if persist_to is not None and persist:
            persist_to[key] = value
            logger.debug("Also stored %s in test data (will persist)", key)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def clear(self) -> None:
        self._values = {}
        logger.info("Cleared captured values")

    def dump(self) -> dict[str, Any]:
        """Shallow copy of all entries."""
        return dict(self._values)

    def keys(self) -> list[str]:
        return list(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableStore({sorted(self._values)!r})"
