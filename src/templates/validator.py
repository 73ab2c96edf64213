# src/templates/validator.py
"""Template admission checks.

A template is accepted when it exposes every required merge field:
``word-merge`` templates must reference each field as ``{name}`` (or
``{ name }``) somewhere in their text; ``fillable-pdf`` templates must
carry a form field with each name. Validation only reads the template.
"""

from __future__ import annotations

import logging
from pathlib import Path

from noiengine.core.fields import REQUIRED_MERGE_FIELDS, find_merge_tokens
from noiengine.core.models import ValidationResult

logger = logging.getLogger(__name__)

_SUFFIX_FORMATS = {".docx": "word-merge", ".pdf": "fillable-pdf"}


class TemplateStructureError(Exception):
    """The template container could not be opened or parsed."""


def detect_format(template_path: Path) -> str | None:
    """Infer the template format from the file suffix."""
    return _SUFFIX_FORMATS.get(Path(template_path).suffix.lower())


class TemplateValidator:
    """Checks templates for the required merge-field set."""

    def __init__(self, required_fields: tuple[str, ...] = REQUIRED_MERGE_FIELDS) -> None:
        self._required = tuple(required_fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return self._required

    def validate(
        self, template_path: Path | str, template_format: str | None = None
    ) -> ValidationResult:
        """Report which required merge fields the template exposes.

        Never raises: an unreadable or malformed template yields
        ``success=False`` with ``error`` set and no missing-field list.
        """
        path = Path(template_path)
        template_format = template_format or detect_format(path)
        if template_format is None:
            return ValidationResult(
                success=False,
                template_path=path,
                error=f"Unrecognized template file type: {path.suffix or '(none)'}",
            )

        try:
            found = self.scan_fields(path, template_format)
        except TemplateStructureError as exc:
            logger.warning("Template %s could not be checked: %s", path, exc)
            return ValidationResult(success=False, template_path=path, error=str(exc))

        missing = [f for f in self._required if f not in found]
        present = [f for f in self._required if f in found]
        if missing:
            logger.info(
                "Template %s is missing %d merge field(s): %s",
                path, len(missing), ", ".join(missing),
            )
        return ValidationResult(
            success=not missing,
            template_path=path,
            missing_fields=missing,
            present_fields=present,
        )

    @staticmethod
    def scan_fields(template_path: Path, template_format: str) -> set[str]:
        """Return every merge-field name the template exposes.

        Raises:
            TemplateStructureError: If the template cannot be opened or parsed.
        """
        if template_format == "word-merge":
            return _scan_docx(template_path)
        if template_format == "fillable-pdf":
            return _scan_pdf_form(template_path)
        raise TemplateStructureError(f"Unsupported template format: {template_format!r}")


def _scan_docx(template_path: Path) -> set[str]:
    try:
        import docx
    except ImportError as e:
        raise ImportError(
            "python-docx package required for Word templates: pip install python-docx"
        ) from e

    from noiengine.templates.docx_walk import document_text

    try:
        document = docx.Document(str(template_path))
        text = document_text(document)
    except Exception as exc:
        raise TemplateStructureError(
            f"Invalid Word document structure: {exc}"
        ) from exc
    return find_merge_tokens(text)


def _scan_pdf_form(template_path: Path) -> set[str]:
    try:
        import fitz  # PyMuPDF
    except ImportError as e:
        raise ImportError(
            "pymupdf package required for PDF form templates: pip install pymupdf"
        ) from e

    try:
        doc = fitz.open(str(template_path), filetype="pdf")
    except Exception as exc:
        raise TemplateStructureError(f"Invalid PDF document structure: {exc}") from exc

    try:
        if doc.needs_pass:
            raise TemplateStructureError("PDF template is encrypted")
        names: set[str] = set()
        for page in doc:
            for widget in page.widgets():
                if widget.field_name:
                    names.add(widget.field_name)
        return names
    finally:
        doc.close()
