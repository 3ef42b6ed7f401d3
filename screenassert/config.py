from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Literal

from .constants import DEFAULT_VISIBLE_TIMEOUT_MS, FALLBACK_METHOD_COUNT


@dataclass
class ValidatorConfig:
    """Options for ImplicationValidator."""

    visible_timeout_ms: int = DEFAULT_VISIBLE_TIMEOUT_MS
    """Timeout forwarded to the backend's wait-style matchers."""
    fallback_method_count: int = FALLBACK_METHOD_COUNT
    """Count assumed for indexed methods when no count source is found."""
    strict_method_count: bool = False
    """Raise CountDiscoveryError instead of using fallback_method_count."""
    persist_store_as: bool = True
    """Default for persistStoreAs when a document omits it."""
    unknown_operator: Literal["raise", "warn"] = "raise"
    """What a data assertion does with an operator it does not know."""
    rng: random.Random = field(default_factory=random.Random)
    """Random source for [any] sampling."""

    def random_index(self, size: int) -> int:
        return self.rng.randrange(size)
