# src/core/fields.py
"""Merge-field contract and template format constants.

Both template formats expose exactly this closed set of merge fields;
the engine never renders a field outside it.
"""

from __future__ import annotations

import re
from typing import Literal, get_args

TemplateFormat = Literal["word-merge", "fillable-pdf"]

TEMPLATE_FORMATS: tuple[str, ...] = get_args(TemplateFormat)

REQUIRED_MERGE_FIELDS: tuple[str, ...] = (
    "claimNumber",
    "customerName",
    "customerAddress",
    "rentalAgreementNumber",
    "vehicleDescription",
    "damageDescription",
    "claimAmount",
    "incidentDate",
    "generatedDate",
    "adjustorName",
    "adjustorPhone",
    "companyName",
    "companyAddress",
    "companyLogo",
)

# File extension per template format (without the dot).
FORMAT_EXTENSIONS: dict[str, str] = {
    "word-merge": "docx",
    "fillable-pdf": "pdf",
}

# {field} or { field } with at most one space on each side.
MERGE_TOKEN_RE = re.compile(r"\{ ?([A-Za-z_][A-Za-z0-9_]*) ?\}")


def extension_for(template_format: str) -> str:
    """Return the file extension for a template format.

    Raises:
        UnsupportedFormatError: If the format is not a known template format.
    """
    try:
        return FORMAT_EXTENSIONS[template_format]
    except KeyError:
        from noiengine.core.errors import UnsupportedFormatError

        raise UnsupportedFormatError(
            f"Unsupported template format: {template_format!r} "
            f"(expected one of {', '.join(TEMPLATE_FORMATS)})"
        ) from None


def find_merge_tokens(text: str) -> set[str]:
    """Return every field name referenced with merge syntax in ``text``."""
    return {m.group(1) for m in MERGE_TOKEN_RE.finditer(text)}
