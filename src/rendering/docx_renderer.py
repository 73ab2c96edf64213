# src/rendering/docx_renderer.py
"""Word merge renderer using python-docx.

Replaces every ``{field}`` / ``{ field }`` token whose name is in the
field dictionary. Unknown tokens and any other braces are left verbatim.
Word often splits a token over several runs; the replacement text lands
in the run where the token starts so its character formatting is kept.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any

from noiengine.core.fields import MERGE_TOKEN_RE
from noiengine.core.models import FieldDictionary
from noiengine.rendering.base_renderer import BaseRenderer
from noiengine.templates.docx_walk import iter_paragraphs

logger = logging.getLogger(__name__)


class DocxMergeRenderer(BaseRenderer):
    """Renderer for ``word-merge`` (.docx) templates."""

    @property
    def template_format(self) -> str:
        return "word-merge"

    def render(self, template_path: Path, fields: FieldDictionary) -> bytes:
        try:
            import docx
        except ImportError as e:
            raise ImportError(
                "python-docx package required for Word rendering: "
                "pip install python-docx"
            ) from e

        document = docx.Document(str(template_path))
        replaced = 0
        for paragraph in iter_paragraphs(document):
            replaced += merge_paragraph(paragraph, fields)
        logger.debug("Merged %d field token(s) into %s", replaced, Path(template_path).name)

        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()


def merge_paragraph(paragraph: Any, fields: FieldDictionary) -> int:
    """Substitute known merge tokens across the paragraph's runs.

    Returns:
        Number of tokens replaced.
    """
    runs = paragraph.runs
    if not runs:
        return 0
    texts = [run.text for run in runs]
    joined = "".join(texts)
    if "{" not in joined:
        return 0

    matches = [m for m in MERGE_TOKEN_RE.finditer(joined) if m.group(1) in fields]
    if not matches:
        return 0

    bounds: list[tuple[int, int]] = []
    offset = 0
    for text in texts:
        bounds.append((offset, offset + len(text)))
        offset += len(text)

    new_texts = list(texts)
    # Right-to-left keeps the offsets of earlier tokens valid.
    for match in reversed(matches):
        start, end = match.span()
        value = fields[match.group(1)]
        first = True
        for i, (run_start, run_end) in enumerate(bounds):
            if run_end <= start or run_start >= end:
                continue
            local_start = max(start, run_start) - run_start
            local_end = min(end, run_end) - run_start
            text = new_texts[i]
            if first:
                new_texts[i] = text[:local_start] + value + text[local_end:]
                first = False
            else:
                new_texts[i] = text[:local_start] + text[local_end:]

    for run, old, new in zip(runs, texts, new_texts):
        if new != old:
            run.text = new
    return len(matches)
