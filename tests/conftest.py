# tests/conftest.py
"""Shared test fixtures for all unit and integration tests.

Builds real Word merge templates with python-docx and real fillable PDF
forms with PyMuPDF, plus settings, registry, cache and engine wired to
a per-test temporary directory.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from noiengine.cache.file_store import FileCacheStore
from noiengine.config.settings import Settings, load_settings
from noiengine.core.fields import REQUIRED_MERGE_FIELDS
from noiengine.logging.context import clear_context
from noiengine.rendering.engine import RenderEngine
from noiengine.templates.registry import TemplateRegistry

FIXED_TODAY = date(2024, 1, 2)


# === FIXTURES: Template builders ===


def _write_docx(
    path: Path,
    fields: Iterable[str] = REQUIRED_MERGE_FIELDS,
    *,
    split_field: str | None = "claimNumber",
    extra_text: str | None = None,
    as_table: bool = False,
) -> Path:
    import docx

    document = docx.Document()
    document.add_heading("Notice of Intent", level=1)
    if as_table:
        _add_field_table(document, list(fields), split_field)
        fields = ()
    for name in fields:
        if name == split_field:
            # Word frequently stores one token across several runs.
            paragraph = document.add_paragraph(f"{name}: ")
            paragraph.add_run("{" + name[:4])
            paragraph.add_run(name[4:] + "}").bold = True
        else:
            document.add_paragraph(f"{name}: {{{name}}}")
    if extra_text:
        document.add_paragraph(extra_text)
    path.parent.mkdir(parents=True, exist_ok=True)
    document.save(str(path))
    return path


def _add_field_table(document: Any, fields: list[str], split_field: str | None) -> None:
    """One row per field (label, token) under a title row spanning both columns."""
    table = document.add_table(rows=len(fields) + 1, cols=2)
    title = table.cell(0, 0).merge(table.cell(0, 1))
    title.text = "Claim details"
    for row, name in enumerate(fields, start=1):
        table.cell(row, 0).text = name
        cell = table.cell(row, 1)
        if name == split_field:
            paragraph = cell.paragraphs[0]
            paragraph.add_run("{" + name[:4])
            paragraph.add_run(name[4:] + "}").bold = True
        else:
            cell.text = f"{{{name}}}"


def _write_pdf_form(path: Path, fields: Iterable[str] = REQUIRED_MERGE_FIELDS) -> Path:
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    y = 40
    for name in fields:
        page.insert_text((40, y + 13), name, fontsize=9)
        widget = fitz.Widget()
        widget.field_name = name
        widget.field_type = fitz.PDF_WIDGET_TYPE_TEXT
        widget.rect = fitz.Rect(180, y, 560, y + 18)
        widget.field_value = ""
        page.add_widget(widget)
        y += 24
    path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def make_docx(tmp_path: Path) -> Callable[..., Path]:
    """Factory: make_docx(name, fields=..., split_field=..., extra_text=..., as_table=...)."""

    def _factory(name: str = "template.docx", fields: Iterable[str] = REQUIRED_MERGE_FIELDS,
                 **kwargs: Any) -> Path:
        return _write_docx(tmp_path / "src" / name, fields, **kwargs)

    return _factory


@pytest.fixture
def make_pdf_form(tmp_path: Path) -> Callable[..., Path]:
    """Factory: make_pdf_form(name, fields=...)."""

    def _factory(name: str = "template.pdf",
                 fields: Iterable[str] = REQUIRED_MERGE_FIELDS) -> Path:
        return _write_pdf_form(tmp_path / "src" / name, fields)

    return _factory


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_claim() -> dict[str, Any]:
    """Claim record in the shape stored by the claims database."""
    return {
        "claimNumber": "CL-2024-0042",
        "customerName": "Alex Rivera",
        "customerAddress": "12 Harbor Road, Apt 4",
        "customerCity": "Springfield",
        "customerState": "IL",
        "customerZip": "62704",
        "raNumber": "RA-555123",
        "carYear": 2022,
        "carMake": "Toyota",
        "carModel": "Camry",
        "carColor": "White",
        "carVIN": "1HGCM82633A123456",
        "description": "Rear bumper dent",
        "damagesTotal": 1250,
        "accidentDate": "2023-12-15",
        "insuranceAdjuster": "Jane Smith",
        "insurancePhoneNumber": "(555) 555-1234",
    }


# === FIXTURES: Wiring ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return load_settings(
        _env_file=None,
        template_root=tmp_path / "templates" / "noi",
        generated_root=tmp_path / "uploads" / "noi",
    )


@pytest.fixture
def registry(settings: Settings) -> TemplateRegistry:
    return TemplateRegistry(settings.template_root)


@pytest.fixture
def cache_store(settings: Settings) -> FileCacheStore:
    return FileCacheStore(settings.cache_root, ttl=settings.cache_ttl)


@pytest.fixture
def engine(
    settings: Settings, registry: TemplateRegistry, cache_store: FileCacheStore
) -> RenderEngine:
    return RenderEngine(
        registry,
        cache_store,
        settings.generated_root,
        today=lambda: FIXED_TODAY,
    )


@pytest.fixture
def installed_docx(registry: TemplateRegistry, make_docx: Callable[..., Path]) -> Path:
    """A valid Word template promoted to current; returns the current path."""
    result = registry.promote(make_docx(), "v1", "word-merge")
    assert result.success, result.message
    return result.template.path


@pytest.fixture
def installed_pdf(registry: TemplateRegistry, make_pdf_form: Callable[..., Path]) -> Path:
    result = registry.promote(make_pdf_form(), "v1", "fillable-pdf")
    assert result.success, result.message
    return result.template.path


@pytest.fixture(autouse=True)
def _reset_log_context():
    yield
    clear_context()
