# src/templates/docx_walk.py
"""Paragraph traversal for python-docx documents.

Covers the body, nested tables and every header/footer that carries its
own definition. Linked headers are skipped: touching them would make
python-docx add an empty definition to the document.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


def iter_paragraphs(document: Any) -> Iterator[Any]:
    """Yield every paragraph of a python-docx Document."""
    yield from _iter_container(document)
    for section in document.sections:
        for part in _section_parts(section):
            if part.is_linked_to_previous:
                continue
            yield from _iter_container(part)


def _section_parts(section: Any) -> list[Any]:
    parts = [section.header, section.footer]
    if section.different_first_page_header_footer:
        parts.extend([section.first_page_header, section.first_page_footer])
    parts.extend([section.even_page_header, section.even_page_footer])
    return parts


def _iter_container(container: Any) -> Iterator[Any]:
    yield from container.paragraphs
    for table in container.tables:
        yield from _iter_table(table)


def _iter_table(table: Any) -> Iterator[Any]:
    # Holding the elements keeps lxml returning the same proxy per cell.
    seen: set[Any] = set()
    for row in table.rows:
        for cell in row.cells:
            # Merged cells are returned once per grid column.
            if cell._tc in seen:
                continue
            seen.add(cell._tc)
            yield from _iter_container(cell)


def document_text(document: Any) -> str:
    """Concatenated paragraph text, one paragraph per line."""
    return "\n".join(p.text for p in iter_paragraphs(document))
