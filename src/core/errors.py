# src/core/errors.py
"""Error taxonomy for the document engine.

Validation and not-found conditions surface to callers as structured
results through the service facade; I/O failures propagate as the
definitive error of a call; cache problems never leave the engine.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from noiengine.core.models import ValidationResult


class NoiEngineError(Exception):
    """Base class for all engine errors."""


class UnsupportedFormatError(NoiEngineError, ValueError):
    """Unknown template format string."""


class TemplateNotFoundError(NoiEngineError):
    """No current or versioned template exists for a requested format."""

    def __init__(self, template_format: str) -> None:
        self.template_format = template_format
        super().__init__(
            f"No {template_format} template is installed; "
            "install a template first."
        )


class TemplateValidationError(NoiEngineError):
    """A template failed admission checks."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        if result.error:
            detail = result.error
        else:
            detail = "missing merge fields: " + ", ".join(result.missing_fields)
        super().__init__(f"Template {result.template_path} rejected: {detail}")


class RenderIOError(NoiEngineError):
    """Disk read/write failure while resolving, rendering or persisting."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        if path is not None:
            message = f"{message} (path: {path})"
        super().__init__(message)


class CacheCorruptionError(NoiEngineError):
    """A cache entry exists but cannot be read or copied."""
