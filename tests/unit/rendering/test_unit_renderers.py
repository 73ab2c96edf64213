# tests/unit/rendering/test_unit_renderers.py
"""Tests for the Word merge and fillable-PDF renderers."""

from __future__ import annotations

import io
import logging

import pytest

from noiengine.core.errors import UnsupportedFormatError
from noiengine.core.fields import REQUIRED_MERGE_FIELDS
from noiengine.mapping.sample_data import SAMPLE_DATA
from noiengine.rendering.docx_renderer import DocxMergeRenderer, merge_paragraph
from noiengine.rendering.pdf_form_renderer import PdfFormRenderer
from noiengine.rendering.renderer_factory import create_renderer, default_renderers
from noiengine.templates.docx_walk import document_text


def _docx_text(data: bytes) -> str:
    import docx

    return document_text(docx.Document(io.BytesIO(data)))


class TestMergeParagraph:
    def _paragraph(self, *runs: str):
        import docx

        paragraph = docx.Document().add_paragraph()
        for text in runs:
            paragraph.add_run(text)
        return paragraph

    def test_single_run(self):
        p = self._paragraph("Dear {customerName},")
        assert merge_paragraph(p, {"customerName": "Alex"}) == 1
        assert p.text == "Dear Alex,"

    def test_token_split_across_runs_keeps_first_run_format(self):
        p = self._paragraph("Claim ", "{clai", "mNumber}", " filed")
        p.runs[1].bold = True
        assert merge_paragraph(p, {"claimNumber": "CL-1"}) == 1
        assert p.text == "Claim CL-1 filed"
        assert p.runs[1].text == "CL-1"
        assert p.runs[1].bold is True
        assert p.runs[2].text == ""

    def test_spaced_token(self):
        p = self._paragraph("{ claimAmount }")
        merge_paragraph(p, {"claimAmount": "$5.00"})
        assert p.text == "$5.00"

    def test_unknown_tokens_untouched(self):
        p = self._paragraph("{unknown} and {claimNumber} and {")
        assert merge_paragraph(p, {"claimNumber": "CL-1"}) == 1
        assert p.text == "{unknown} and CL-1 and {"

    def test_multiple_tokens_in_one_paragraph(self):
        p = self._paragraph("{a}", "-{b}-", "{a}")
        assert merge_paragraph(p, {"a": "1", "b": "22"}) == 3
        assert p.text == "1-22-1"

    def test_value_with_braces_is_not_re_merged(self):
        p = self._paragraph("{a} {b}")
        merge_paragraph(p, {"a": "{b}", "b": "x"})
        assert p.text == "{b} x"


class TestDocxMergeRenderer:
    def test_renders_every_field(self, make_docx):
        data = DocxMergeRenderer().render(make_docx(), SAMPLE_DATA)
        text = _docx_text(data)
        assert "CL-2023-00123" in text
        assert "John Q. Sample" in text
        assert "{claimNumber}" not in text
        assert "{" not in text

    def test_leaves_template_untouched(self, make_docx):
        template = make_docx()
        before = template.read_bytes()
        DocxMergeRenderer().render(template, SAMPLE_DATA)
        assert template.read_bytes() == before

    def test_unknown_tokens_survive(self, make_docx):
        template = make_docx(extra_text="Reference {internalCode}")
        text = _docx_text(DocxMergeRenderer().render(template, SAMPLE_DATA))
        assert "Reference {internalCode}" in text

    def test_merges_tables_and_headers(self, tmp_path):
        import docx

        document = docx.Document()
        document.sections[0].header.paragraphs[0].text = "{companyName}"
        document.add_table(rows=1, cols=1).cell(0, 0).text = "{claimAmount}"
        path = tmp_path / "t.docx"
        document.save(str(path))

        rendered = docx.Document(io.BytesIO(DocxMergeRenderer().render(path, SAMPLE_DATA)))
        assert rendered.sections[0].header.paragraphs[0].text == "Budget Car Rental"
        assert rendered.tables[0].cell(0, 0).text == "$1,250.00"

    def test_merges_every_table_row(self, make_docx):
        import docx

        template = make_docx(as_table=True)
        rendered = docx.Document(io.BytesIO(DocxMergeRenderer().render(template, SAMPLE_DATA)))

        table = rendered.tables[0]
        merged = {row.cells[0].text: row.cells[1].text for row in table.rows[1:]}
        assert list(merged) == list(REQUIRED_MERGE_FIELDS)
        for name, value in SAMPLE_DATA.items():
            if "\n" not in value:
                assert merged[name] == value
        text = document_text(rendered)
        assert "{" not in text
        assert text.count("Claim details") == 1


class TestPdfFormRenderer:
    def test_fills_and_flattens(self, make_pdf_form):
        import fitz

        data = PdfFormRenderer().render(make_pdf_form(), SAMPLE_DATA)

        doc = fitz.open(stream=data, filetype="pdf")
        try:
            page = doc[0]
            assert list(page.widgets()) == []
            text = page.get_text()
            assert "CL-2023-00123" in text
            assert "Budget Car Rental" in text
        finally:
            doc.close()

    def test_missing_form_field_is_skipped_with_warning(self, make_pdf_form, caplog):
        fields = [f for f in REQUIRED_MERGE_FIELDS if f != "companyLogo"]
        with caplog.at_level(logging.WARNING, logger="noiengine"):
            data = PdfFormRenderer().render(make_pdf_form(fields=fields), SAMPLE_DATA)
        assert data.startswith(b"%PDF")
        assert "companyLogo" in caplog.text

    def test_leaves_template_untouched(self, make_pdf_form):
        template = make_pdf_form()
        before = template.read_bytes()
        PdfFormRenderer().render(template, SAMPLE_DATA)
        assert template.read_bytes() == before


class TestRendererFactory:
    def test_create(self):
        assert isinstance(create_renderer("word-merge"), DocxMergeRenderer)
        assert isinstance(create_renderer("fillable-pdf"), PdfFormRenderer)
        assert create_renderer("fillable-pdf").extension == "pdf"

    def test_unknown(self):
        with pytest.raises(UnsupportedFormatError):
            create_renderer("odt")

    def test_default_renderers(self):
        assert set(default_renderers()) == {"word-merge", "fillable-pdf"}
