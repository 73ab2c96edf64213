# src/api/models.py
"""Service-level result models returned by NoticeService.

Every service operation returns one of these instead of raising.
``error_kind`` tells the caller which failure category occurred.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from noiengine.core.models import (
    GeneratedDocument,
    PromotionResult,
    Template,
    ValidationResult,
)

ErrorKind = Literal["validation", "not_found", "io", "unsupported_format", "internal"]


class ServiceResult(BaseModel):
    """Common envelope: success flag, failure category and a human message."""

    success: bool
    error_kind: ErrorKind | None = None
    message: str = ""


class TemplateListResult(ServiceResult):
    templates: list[Template] = Field(default_factory=list)


class UploadResult(ServiceResult):
    """Outcome of upload_and_validate.

    ``staged_path`` is set only when the upload passed validation; it is
    the path to hand to promote_template.
    """

    staged_path: Path | None = None
    validation: ValidationResult | None = None


class PromoteResult(ServiceResult):
    promotion: PromotionResult | None = None


class DocumentResult(ServiceResult):
    document: GeneratedDocument | None = None


class PurgeResult(ServiceResult):
    removed: int = 0
