"""
``{{path}}`` template resolution.

Lookup precedence is always: variable store, then the caller's data object.
A string that is exactly one token resolves to the typed value; tokens
embedded in other text are replaced by their string form.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from .constants import MAX_LISTED_VARIABLES
from .store import VariableStore

logger = logging.getLogger(__name__)

FULL_TOKEN_RE = re.compile(r"^\{\{([^}]+)\}\}$")
TOKEN_RE = re.compile(r"\{\{([^}]+)\}\}")
_INDEX_RE = re.compile(r"\[(\d+)\]")
_QUOTED_KEY_RE = re.compile(r"\[[\"']([^\"']+)[\"']\]")


class _Missing:
    """Sentinel for 'path does not resolve' (None is a legitimate value)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def split_path(path: str) -> list[str]:
    """
    Split a template path into segments.

    >>> split_path("passengers[0].name")
    ['passengers', '0', 'name']
    >>> split_path("user['first name']")
    ['user', 'first name']
    """
    normalized = _INDEX_RE.sub(r".\1", path)
    normalized = _QUOTED_KEY_RE.sub(r".\1", normalized)
    return [p for p in normalized.split(".") if p]


def traverse(current: Any, parts: Sequence[str]) -> Any:
    for part in parts:
        if current is None or current is MISSING:
            return MISSING
        if isinstance(current, Mapping):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not part.isdigit() or int(part) >= len(current):
                return MISSING
            current = current[int(part)]
        else:
            current = getattr(current, part, MISSING)
    return current


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


class TemplateResolver:
    def __init__(self, store: VariableStore) -> None:
        self.store = store

    def get_nested_value(self, data: Any, path: str) -> Any:
        """
        Look up ``path`` in the variable store first, then in ``data``.

        Returns MISSING when neither source has the path.
        """
        if not path:
            return MISSING
        parts = split_path(path)
        if not parts:
            return MISSING

        first = parts[0]
        if first in self.store:
            found = traverse(self.store.get(first), parts[1:])
            if found is not MISSING:
                return found

        # A captured key may itself contain dots
        if path in self.store:
            return self.store.get(path)

        if data is None:
            return MISSING
        return traverse(data, parts)

    def resolve(self, value: Any, data: Any = None) -> Any:
        """Resolve every ``{{path}}`` token in ``value`` (recursing into lists and dicts)."""
        if isinstance(value, str):
            return self._resolve_string(value, data)
        if isinstance(value, (list, tuple)):
            return [self.resolve(v, data) for v in value]
        if isinstance(value, Mapping):
            return {k: self.resolve(v, data) for k, v in value.items()}
        return value

    def _resolve_string(self, value: str, data: Any) -> Any:
        full = FULL_TOKEN_RE.match(value)
        if full:
            path = full.group(1).strip()
            result = self.get_nested_value(data, path)
            if result is not MISSING:
                logger.debug("Resolved {{%s}} -> %r", path, result)
                return result
            logger.warning("Variable {{%s}} not found!", path)
            self._log_available_variables(data, path)
            return value

        def _substitute(match: re.Match[str]) -> str:
            path = match.group(1).strip()
            result = self.get_nested_value(data, path)
            if result is MISSING or result is None:
                logger.warning("Variable {{%s}} not found", path)
                return match.group(0)
            logger.debug("Resolved {{%s}} -> %s", path, result)
            return stringify(result)

        return TOKEN_RE.sub(_substitute, value)

    def _log_available_variables(self, data: Any, attempted_path: str) -> None:
        captured = self.store.keys()
        if captured:
            logger.warning("  Captured: %s", _listing(captured))
        if isinstance(data, Mapping):
            data_keys = [str(k) for k in data if not str(k).startswith("_")]
            if data_keys:
                logger.warning("  testData: %s", _listing(data_keys))

        base = split_path(attempted_path)[0] if split_path(attempted_path) else attempted_path
        if isinstance(data, Mapping) and base in data:
            logger.warning('  "%s" exists in testData - check the nested path', base)
        elif base in self.store:
            logger.warning('  "%s" exists in captured values - check the nested path', base)
        else:
            logger.warning('  Make sure "%s" was stored with storeAs in a previous step', base)


def _listing(names: list[str]) -> str:
    shown = ", ".join(names[:MAX_LISTED_VARIABLES])
    return shown + ("..." if len(names) > MAX_LISTED_VARIABLES else "")
