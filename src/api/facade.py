# src/api/facade.py
"""Public service facade: the boundary the web layer calls.

Usage:
    from noiengine.api.facade import NoticeService
    service = NoticeService()
    result = await service.generate(claim_id, claim, "word-merge")
    if result.success:
        send_file(result.document.path)

Every operation returns a ServiceResult subclass. Validation and
not-found conditions come back as ``success=False`` with ``error_kind``
set; no exception escapes an operation.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TypeVar

from noiengine.api.models import (
    DocumentResult,
    ErrorKind,
    PromoteResult,
    PurgeResult,
    ServiceResult,
    TemplateListResult,
    UploadResult,
)
from noiengine.config.settings import Settings, load_settings
from noiengine.core.errors import (
    RenderIOError,
    TemplateNotFoundError,
    TemplateValidationError,
    UnsupportedFormatError,
)
from noiengine.core.fields import TEMPLATE_FORMATS, extension_for
from noiengine.core.models import ClaimData
from noiengine.mapping.field_mapper import CompanyProfile, to_field_dictionary
from noiengine.mapping.preview import render_field_preview_html
from noiengine.rendering.engine import RenderEngine
from noiengine.storage import layout
from noiengine.storage.files import atomic_write_bytes, remove_quietly
from noiengine.templates.registry import TemplateRegistry

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=ServiceResult)


class NoticeService:
    """Template management and notice generation behind structured results."""

    def __init__(
        self,
        settings: Settings | None = None,
        engine: RenderEngine | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        self._engine = engine or RenderEngine.from_settings(self._settings)
        layout.ensure_directories(
            self._engine.registry.root, self._engine.generated_root, TEMPLATE_FORMATS
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def engine(self) -> RenderEngine:
        return self._engine

    @property
    def registry(self) -> TemplateRegistry:
        return self._engine.registry

    # --- Templates ---

    def list_templates(self, template_format: str | None = None) -> TemplateListResult:
        """Current template first, then archived versions newest first."""
        template_format = template_format or self._settings.default_format
        try:
            templates = self.registry.list_templates(template_format)
        except Exception as exc:
            return _failed(TemplateListResult, exc)
        return TemplateListResult(
            success=True,
            message=f"{len(templates)} {template_format} template(s)",
            templates=templates,
        )

    def upload_and_validate(
        self, file_bytes: bytes, template_format: str | None = None
    ) -> UploadResult:
        """Stage uploaded template bytes and check them for the required fields.

        A valid upload stays staged under templates/<format>/uploads/ and
        its path is returned for promote_template. An invalid upload is
        removed again.
        """
        template_format = template_format or self._settings.default_format
        if not file_bytes:
            return UploadResult(
                success=False, error_kind="validation", message="Uploaded template is empty"
            )
        try:
            ext = extension_for(template_format)
            staged = layout.uploads_dir(self.registry.root, template_format) / (
                f"{uuid.uuid4()}.{ext}"
            )
            try:
                atomic_write_bytes(staged, file_bytes)
            except OSError as exc:
                raise RenderIOError(f"Failed to stage upload: {exc}", staged) from exc
            validation = self.registry.validator.validate(staged, template_format)
        except Exception as exc:
            return _failed(UploadResult, exc)

        if not validation.success:
            remove_quietly(staged)
            return UploadResult(
                success=False,
                error_kind="validation",
                message=str(TemplateValidationError(validation)),
                validation=validation,
            )

        logger.info("Staged valid %s template upload %s", template_format, staged.name)
        return UploadResult(
            success=True,
            message="Template contains all required merge fields",
            staged_path=staged,
            validation=validation,
        )

    def promote_template(
        self,
        candidate_path: Path | str,
        version: str,
        template_format: str | None = None,
    ) -> PromoteResult:
        """Install a (staged or local) template as the current one."""
        if not version or not version.strip():
            return PromoteResult(
                success=False, error_kind="validation", message="A version label is required"
            )
        candidate = Path(candidate_path)
        try:
            promotion = self.registry.promote(candidate, version.strip(), template_format)
        except Exception as exc:
            return _failed(PromoteResult, exc)

        if not promotion.success:
            return PromoteResult(
                success=False,
                error_kind="validation",
                message=promotion.message,
                promotion=promotion,
            )

        if promotion.template is not None:
            staging = layout.uploads_dir(self.registry.root, promotion.template.format)
            if candidate.resolve().parent == staging.resolve():
                remove_quietly(candidate)
        return PromoteResult(success=True, message=promotion.message, promotion=promotion)

    # --- Documents ---

    async def generate(
        self,
        entity_id: str,
        entity_data: ClaimData | Mapping[str, Any] | None,
        template_format: str | None = None,
    ) -> DocumentResult:
        """Generate (or reuse from cache) the notice for one claim."""
        template_format = template_format or self._settings.default_format
        try:
            document = await self._engine.generate(entity_id, entity_data, template_format)
        except Exception as exc:
            return _failed(DocumentResult, exc)
        return DocumentResult(success=True, message=document.file_name, document=document)

    async def preview_with_sample_data(
        self,
        template_path: Path | str,
        overrides: Mapping[str, object] | None = None,
        template_format: str | None = None,
    ) -> DocumentResult:
        """Render a template with the built-in sample data (never cached)."""
        try:
            document = await self._engine.preview_with_sample_data(
                template_path, overrides, template_format
            )
        except Exception as exc:
            return _failed(DocumentResult, exc)
        return DocumentResult(success=True, message=document.file_name, document=document)

    def field_preview_html(
        self, entity_data: ClaimData | Mapping[str, Any] | None = None
    ) -> str:
        """HTML table of the merge data for a claim, or of the sample data."""
        if entity_data is None:
            return render_field_preview_html()
        fields = to_field_dictionary(
            entity_data, company=CompanyProfile.from_settings(self._settings)
        )
        return render_field_preview_html(fields)

    # --- Maintenance ---

    async def purge_cache(self) -> PurgeResult:
        try:
            removed = await self._engine.purge_cache()
        except Exception as exc:
            return _failed(PurgeResult, exc)
        return PurgeResult(
            success=True, message=f"Removed {removed} expired cache entries", removed=removed
        )


def _error_kind(exc: BaseException) -> ErrorKind:
    if isinstance(exc, TemplateValidationError):
        return "validation"
    if isinstance(exc, TemplateNotFoundError):
        return "not_found"
    if isinstance(exc, UnsupportedFormatError):
        return "unsupported_format"
    if isinstance(exc, (RenderIOError, OSError)):
        return "io"
    return "internal"


def _failed(result_cls: type[ResultT], exc: Exception) -> ResultT:
    """Convert an exception into a failed result of ``result_cls``."""
    kind = _error_kind(exc)
    if kind == "internal":
        logger.exception("Unexpected failure in service operation")
    elif kind == "io":
        logger.error("%s", exc)
    else:
        logger.warning("%s", exc)
    return result_cls(success=False, error_kind=kind, message=str(exc))
