# tests/unit/api/test_unit_facade.py
"""Tests for api/facade.py — structured results at the service boundary."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from noiengine.api.facade import NoticeService
from noiengine.core.fields import REQUIRED_MERGE_FIELDS
from noiengine.storage import layout


@pytest.fixture
def service(settings, engine) -> NoticeService:
    return NoticeService(settings, engine)


class TestConstruction:
    def test_creates_standard_directories(self, settings, engine):
        NoticeService(settings, engine)
        assert layout.versions_dir(settings.template_root, "word-merge").is_dir()
        assert layout.versions_dir(settings.template_root, "fillable-pdf").is_dir()
        assert layout.cache_dir(settings.generated_root).is_dir()

    def test_builds_engine_from_settings(self, settings):
        service = NoticeService(settings)
        assert service.registry.root == settings.template_root


class TestListTemplates:
    def test_empty(self, service):
        result = service.list_templates("word-merge")
        assert result.success is True
        assert result.templates == []

    def test_defaults_to_configured_format(self, service, installed_docx):
        result = service.list_templates()
        assert [t.is_current for t in result.templates] == [True]

    def test_unknown_format(self, service):
        result = service.list_templates("html")
        assert result.success is False
        assert result.error_kind == "unsupported_format"


class TestUploadAndValidate:
    def test_valid_upload_is_staged(self, service, make_docx, settings):
        result = service.upload_and_validate(make_docx().read_bytes(), "word-merge")
        assert result.success is True
        assert result.staged_path.parent == layout.uploads_dir(settings.template_root, "word-merge")
        assert result.staged_path.suffix == ".docx"
        assert result.validation.missing_fields == []

    def test_invalid_upload_reports_missing_and_is_removed(self, service, make_pdf_form, settings):
        fields = [f for f in REQUIRED_MERGE_FIELDS if f not in ("claimAmount", "companyLogo")]
        result = service.upload_and_validate(make_pdf_form(fields=fields).read_bytes(), "fillable-pdf")

        assert result.success is False
        assert result.error_kind == "validation"
        assert result.staged_path is None
        assert set(result.validation.missing_fields) == {"claimAmount", "companyLogo"}
        assert "claimAmount" in result.message
        assert not any(layout.uploads_dir(settings.template_root, "fillable-pdf").iterdir())

    def test_unreadable_upload(self, service):
        result = service.upload_and_validate(b"garbage", "word-merge")
        assert result.success is False
        assert result.error_kind == "validation"
        assert result.validation.error is not None

    def test_empty_upload(self, service):
        result = service.upload_and_validate(b"", "word-merge")
        assert result.success is False
        assert result.error_kind == "validation"

    def test_staging_failure(self, service, make_docx):
        with patch(
            "noiengine.api.facade.atomic_write_bytes", side_effect=PermissionError("read-only")
        ):
            result = service.upload_and_validate(make_docx().read_bytes(), "word-merge")
        assert result.success is False
        assert result.error_kind == "io"


class TestPromoteTemplate:
    def test_promote_staged_upload(self, service, make_docx):
        upload = service.upload_and_validate(make_docx().read_bytes(), "word-merge")
        result = service.promote_template(upload.staged_path, "2024.2", "word-merge")

        assert result.success is True
        assert result.message == "NOI template updated to version 2024.2"
        assert not upload.staged_path.exists()
        assert service.registry.resolve_current("word-merge").version == "2024.2"

    def test_local_candidate_is_kept(self, service, make_docx):
        candidate = make_docx()
        assert service.promote_template(candidate, "v1").success is True
        assert candidate.exists()

    def test_invalid_candidate(self, service, installed_docx, make_docx):
        bad = make_docx("bad.docx", fields=["claimNumber"], split_field=None)
        result = service.promote_template(bad, "v2", "word-merge")

        assert result.success is False
        assert result.error_kind == "validation"
        assert result.promotion.validation.missing_fields
        assert service.registry.resolve_current("word-merge").version == "v1"

    def test_blank_version(self, service, make_docx):
        result = service.promote_template(make_docx(), "  ")
        assert result.success is False
        assert result.error_kind == "validation"

    def test_io_failure(self, service, make_docx):
        with patch(
            "noiengine.templates.registry.atomic_copy", side_effect=OSError("disk full")
        ):
            result = service.promote_template(make_docx(), "v1", "word-merge")
        assert result.success is False
        assert result.error_kind == "io"
        assert "disk full" in result.message


class TestGenerate:
    @pytest.mark.asyncio
    async def test_success(self, service, installed_docx, sample_claim):
        result = await service.generate("claim-1", sample_claim)
        assert result.success is True
        assert result.document.from_cache is False
        assert result.message == result.document.file_name

    @pytest.mark.asyncio
    async def test_not_found_is_structured(self, service, sample_claim):
        result = await service.generate("claim-1", sample_claim, "fillable-pdf")
        assert result.success is False
        assert result.error_kind == "not_found"
        assert "install a template first" in result.message
        assert result.document is None

    @pytest.mark.asyncio
    async def test_io_failure_is_structured(self, service, installed_docx, sample_claim):
        installed_docx.write_bytes(b"corrupted")
        result = await service.generate("claim-1", sample_claim)
        assert result.success is False
        assert result.error_kind == "io"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_structured(self, service, sample_claim):
        with patch.object(
            service.engine, "generate", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            result = await service.generate("claim-1", sample_claim)
        assert result.success is False
        assert result.error_kind == "internal"


class TestPreview:
    @pytest.mark.asyncio
    async def test_preview(self, service, make_docx):
        result = await service.preview_with_sample_data(make_docx(), {"claimNumber": "PV-1"})
        assert result.success is True
        assert result.document.fields["claimNumber"] == "PV-1"

    @pytest.mark.asyncio
    async def test_preview_bad_type(self, service, tmp_path):
        path = tmp_path / "x.txt"
        path.write_text("x")
        result = await service.preview_with_sample_data(path)
        assert result.error_kind == "unsupported_format"

    def test_field_preview_html_for_claim(self, service, sample_claim):
        html = service.field_preview_html(sample_claim)
        assert "CL-2024-0042" in html
        assert "$1,250.00" in html

    def test_field_preview_html_sample(self, service):
        assert "John Q. Sample" in service.field_preview_html()


class TestPurgeCache:
    @pytest.mark.asyncio
    async def test_purge(self, service):
        result = await service.purge_cache()
        assert result.success is True
        assert result.removed == 0
