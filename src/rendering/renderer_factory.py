# src/rendering/renderer_factory.py
"""Factory: select the renderer for a template format."""

from __future__ import annotations

from noiengine.core.errors import UnsupportedFormatError
from noiengine.core.fields import TEMPLATE_FORMATS
from noiengine.rendering.base_renderer import BaseRenderer


def create_renderer(template_format: str) -> BaseRenderer:
    """Return a renderer instance for ``template_format``.

    Raises:
        UnsupportedFormatError: If the format is not supported.
    """
    if template_format == "word-merge":
        from noiengine.rendering.docx_renderer import DocxMergeRenderer
        return DocxMergeRenderer()

    if template_format == "fillable-pdf":
        from noiengine.rendering.pdf_form_renderer import PdfFormRenderer
        return PdfFormRenderer()

    raise UnsupportedFormatError(
        f"Unsupported template format: {template_format!r} "
        f"(expected one of {', '.join(TEMPLATE_FORMATS)})"
    )


def default_renderers() -> dict[str, BaseRenderer]:
    """One renderer per supported format."""
    return {fmt: create_renderer(fmt) for fmt in TEMPLATE_FORMATS}
