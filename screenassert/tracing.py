"""
Tracer hook for validation events.

Any object with an ``emit(event_type, data, step_id=None)`` method can be
passed as a tracer; events are best-effort and never fail a validation.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Tracer(Protocol):
    def emit(self, event_type: str, data: dict[str, Any], step_id: str | None = None) -> None:
        ...


class NoopTracer:
    def emit(self, event_type: str, data: dict[str, Any], step_id: str | None = None) -> None:  # pragma: no cover
        return


def safe_emit(tracer: Tracer, event_type: str, data: dict[str, Any], step_id: str | None = None) -> None:
    try:
        tracer.emit(event_type, data=data, step_id=step_id)
    except Exception as exc:
        # Tracing must be non-fatal
        logger.debug("tracer.emit(%s) failed: %s", event_type, exc)
