# src/rendering/pdf_form_renderer.py
"""Fillable PDF renderer using PyMuPDF (fitz).

Sets each text form field named in the dictionary, then flattens the
form so the result carries no editable fields. Dictionary entries with
no matching form field are skipped with a warning.
"""

from __future__ import annotations

import logging
from pathlib import Path

from noiengine.core.models import FieldDictionary
from noiengine.rendering.base_renderer import BaseRenderer

logger = logging.getLogger(__name__)


class PdfFormRenderer(BaseRenderer):
    """Renderer for ``fillable-pdf`` templates."""

    @property
    def template_format(self) -> str:
        return "fillable-pdf"

    def render(self, template_path: Path, fields: FieldDictionary) -> bytes:
        try:
            import fitz  # PyMuPDF
        except ImportError as e:
            raise ImportError(
                "pymupdf package required for PDF form rendering: pip install pymupdf"
            ) from e

        doc = fitz.open(str(template_path), filetype="pdf")
        try:
            on_form: set[str] = set()
            for page in doc:
                for widget in page.widgets():
                    name = widget.field_name
                    if not name:
                        continue
                    on_form.add(name)
                    if name not in fields:
                        continue
                    if widget.field_type != fitz.PDF_WIDGET_TYPE_TEXT:
                        logger.warning(
                            "Form field %s is not a text field; skipped", name
                        )
                        continue
                    widget.field_value = fields[name]
                    widget.update()

            skipped = sorted(set(fields) - on_form)
            if skipped:
                logger.warning(
                    "Template %s has no form field for: %s",
                    Path(template_path).name, ", ".join(skipped),
                )

            doc.bake(annots=True, widgets=True)
            return doc.tobytes(garbage=3, deflate=True)
        finally:
            doc.close()
