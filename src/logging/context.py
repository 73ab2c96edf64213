# src/logging/context.py
"""Contextual logging support: attach entity_id, render_id, format and step to log records.

The Render Engine sets these once per ``generate`` call so every record
emitted underneath (registry, cache, renderers) carries the request it
belongs to.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_entity_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "entity_id", default=None
)
_render_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "render_id", default=None
)
_template_format: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "template_format", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    entity_id: str | None = None
    render_id: str | None = None
    template_format: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        entity_id=_entity_id.get(),
        render_id=_render_id.get(),
        template_format=_template_format.get(),
        step=_step.get(),
    )


def set_render_context(entity_id: str, render_id: str, template_format: str) -> None:
    """Set request-level context (called once per generate call)."""
    _entity_id.set(entity_id)
    _render_id.set(render_id)
    _template_format.set(template_format)


def set_step(step: str | None) -> None:
    """Set the current render step (resolve, cache, map, merge, persist)."""
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _entity_id.set(None)
    _render_id.set(None)
    _template_format.set(None)
    _step.set(None)
