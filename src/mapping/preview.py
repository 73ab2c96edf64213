# src/mapping/preview.py
"""HTML table preview of merge data, shown before a notice is generated."""

from __future__ import annotations

from html import escape

from noiengine.core.models import FieldDictionary
from noiengine.mapping.sample_data import SAMPLE_DATA

_CELL = "padding: 8px; border: 1px solid #ddd;"
_HEAD = f"text-align: left; {_CELL} background-color: #f2f2f2;"


def render_field_preview_html(fields: FieldDictionary | None = None) -> str:
    """Render a two-column Field/Value table. Values are HTML-escaped."""
    data = SAMPLE_DATA if fields is None else fields
    rows = "\n".join(
        f'      <tr><td style="{_CELL}">{escape(key)}</td>'
        f'<td style="{_CELL}">{escape(value).replace(chr(10), "<br>")}</td></tr>'
        for key, value in data.items()
    )
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 800px; '
        'margin: 0 auto; padding: 20px;">\n'
        "  <h2>NOI Template Data Preview</h2>\n"
        '  <table style="width: 100%; border-collapse: collapse;">\n'
        f'      <tr><th style="{_HEAD}">Field</th><th style="{_HEAD}">Value</th></tr>\n'
        f"{rows}\n"
        "  </table>\n"
        "</div>\n"
    )
