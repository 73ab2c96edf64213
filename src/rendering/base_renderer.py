# src/rendering/base_renderer.py
"""Abstract renderer interface: one merge operation, one variant per template format."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from noiengine.core.fields import extension_for
from noiengine.core.models import FieldDictionary


class BaseRenderer(ABC):
    """Merges a field dictionary into a template and returns the rendered bytes."""

    @property
    @abstractmethod
    def template_format(self) -> str:
        """Template format handled by this renderer (e.g. 'word-merge')."""

    @property
    def extension(self) -> str:
        return extension_for(self.template_format)

    @abstractmethod
    def render(self, template_path: Path, fields: FieldDictionary) -> bytes:
        """Render ``template_path`` with ``fields``.

        Blocking; callers on an event loop run it in a worker thread.
        The template file is only read, never modified.
        """
