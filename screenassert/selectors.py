"""
Field selector parsing.

Grammar::

    selector := ident ( '[' index ( ':' countRef )? ']' )?
    index    := integer | 'first' | 'last' | 'all' | 'any' | '{{' path '}}'

``countRef`` names the screen member that reports how many elements an
indexed method can address (``title[all:titleCount]``).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Union

from .templates import MISSING

if TYPE_CHECKING:
    from .templates import TemplateResolver

logger = logging.getLogger(__name__)

IndexKeyword = Literal["first", "last", "all", "any"]
SelectorIndex = Union[int, IndexKeyword, None]

_VARIABLE_INDEX_RE = re.compile(r"^(.+)\[\{\{([^}]+)\}\}\]$")
_STANDARD_INDEX_RE = re.compile(
    r"^(.+)\[(\d+|first|last|all|any)(?:\s*:\s*([A-Za-z_$][\w$]*))?\]$"
)


@dataclass(frozen=True)
class FieldSelector:
    field: str
    index: SelectorIndex = None
    variable_index: str | None = None
    count_of: str | None = None
    resolution_failed: bool = False

    @property
    def label(self) -> str:
        return f"[{self.index}]" if self.index is not None else ""

    @property
    def is_collection(self) -> bool:
        return self.index in ("all", "any")

    def __str__(self) -> str:
        return f"{self.field}{self.label}"


def coerce_index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_field_selector(
    selector: str | None,
    resolver: TemplateResolver | None = None,
    data: Any = None,
) -> FieldSelector:
    """
    Parse ``field``, ``field[3]``, ``field[first|last|all|any]`` or ``field[{{var}}]``.

    A variable index that cannot be resolved to an integer falls back to 0
    and sets ``resolution_failed``; this function never raises.
    """
    if not selector:
        return FieldSelector(field=selector or "")

    var_match = _VARIABLE_INDEX_RE.match(selector)
    if var_match:
        field, var_path = var_match.group(1), var_match.group(2).strip()
        resolved = resolver.get_nested_value(data, var_path) if resolver is not None else MISSING

        if resolved is MISSING or resolved is None:
            logger.warning("Variable index {{%s}} not found, defaulting to 0", var_path)
            return FieldSelector(field=field, index=0, variable_index=var_path, resolution_failed=True)

        numeric = coerce_index(resolved)
        if numeric is None:
            logger.warning(
                'Variable {{%s}} = "%s" is not a number, defaulting to 0', var_path, resolved
            )
            return FieldSelector(field=field, index=0, variable_index=var_path, resolution_failed=True)

        logger.debug("Resolved {{%s}} -> %d", var_path, numeric)
        return FieldSelector(field=field, index=numeric, variable_index=var_path)

    match = _STANDARD_INDEX_RE.match(selector)
    if not match:
        return FieldSelector(field=selector)

    raw = match.group(2)
    index: SelectorIndex = int(raw) if raw.isdigit() else raw  # type: ignore[assignment]
    return FieldSelector(field=match.group(1), index=index, count_of=match.group(3))
