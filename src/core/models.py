# src/core/models.py
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from noiengine.core.fields import TemplateFormat

FieldDictionary = dict[str, str]


# === TEMPLATES ===


class Template(BaseModel):
    """A template artifact on disk, current or archived."""

    path: Path
    format: TemplateFormat
    version: str
    is_current: bool = False
    last_modified: datetime
    merge_fields: list[str] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def last_modified_epoch_millis(self) -> int:
        return int(self.last_modified.timestamp() * 1000)


class ValidationResult(BaseModel):
    """Outcome of checking a template for the required merge fields.

    ``error`` is set only when the template could not be checked at all
    (unreadable or malformed container); ``missing_fields`` is then empty.
    """

    success: bool
    template_path: Path
    missing_fields: list[str] = Field(default_factory=list)
    present_fields: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def structurally_valid(self) -> bool:
        return self.error is None


class CurrentTemplateManifest(BaseModel):
    """Sidecar written next to current.<ext> describing the installed template."""

    version: str
    installed_at: datetime
    source_name: str | None = None


class PromotionResult(BaseModel):
    """Outcome of TemplateRegistry.promote()."""

    success: bool
    message: str
    validation: ValidationResult
    template: Template | None = None
    archived: Template | None = None


# === SOURCE ENTITY ===


class AddressParts(BaseModel):
    """Structured street address (two lines)."""

    model_config = ConfigDict(extra="ignore")

    line1: str | None = None
    line2: str | None = None


class ClaimData(BaseModel):
    """Claim attributes recognized by the field mapper.

    Every attribute is optional; the mapper fills gaps with empty strings.
    Accepts the claim record's camelCase keys as well as field names.
    Numeric identifiers (claim, agreement, ZIP, phone) are kept as text.
    """

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    claim_number: str | None = Field(default=None, alias="claimNumber")
    customer_name: str | None = Field(default=None, alias="customerName")
    customer_address: str | AddressParts | None = Field(
        default=None, alias="customerAddress"
    )
    customer_city: str | None = Field(default=None, alias="customerCity")
    customer_state: str | None = Field(default=None, alias="customerState")
    customer_zip: str | None = Field(default=None, alias="customerZip")
    rental_agreement_number: str | None = Field(default=None, alias="raNumber")
    car_year: int | str | None = Field(default=None, alias="carYear")
    car_make: str | None = Field(default=None, alias="carMake")
    car_model: str | None = Field(default=None, alias="carModel")
    car_color: str | None = Field(default=None, alias="carColor")
    car_vin: str | None = Field(default=None, alias="carVIN")
    description: str | None = None
    damages_total: float | str | None = Field(default=None, alias="damagesTotal")
    accident_date: datetime | date | str | None = Field(
        default=None, alias="accidentDate"
    )
    insurance_adjuster: str | None = Field(default=None, alias="insuranceAdjuster")
    insurance_phone_number: str | None = Field(
        default=None, alias="insurancePhoneNumber"
    )


# === OUTPUT ===


class GeneratedDocument(BaseModel):
    """A per-request output artifact."""

    path: Path
    file_name: str
    from_cache: bool
    fields: FieldDictionary = Field(default_factory=dict)
    format: TemplateFormat
    fingerprint: str | None = None
