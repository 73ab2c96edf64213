# src/mapping/field_mapper.py
"""Claim → merge-field dictionary mapping.

Produces exactly the REQUIRED_MERGE_FIELDS keys for any claim shape.
Raw attributes go through the formatters; absent attributes become "".
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

from pydantic import BaseModel, ValidationError

from noiengine.core.fields import REQUIRED_MERGE_FIELDS
from noiengine.core.models import ClaimData, FieldDictionary
from noiengine.formatting.formatters import (
    compose_vehicle_description,
    format_address,
    format_city_state_zip,
    format_currency,
    format_date,
)

logger = logging.getLogger(__name__)


class CompanyProfile(BaseModel):
    """Fixed letterhead values merged into every notice."""

    name: str = "Budget Car Rental"
    address: str = "456 Corporate Plaza, Suite 300, Business City, CA 94123"
    logo: str = "[COMPANY LOGO]"

    @classmethod
    def from_settings(cls, settings: Any) -> CompanyProfile:
        return cls(
            name=settings.company_name,
            address=settings.company_address,
            logo=settings.company_logo,
        )


def coerce_claim(entity: ClaimData | Mapping[str, Any] | None) -> ClaimData:
    """Build a ClaimData from a claim record, dropping attributes that fail validation.

    A single malformed attribute (e.g. a nested object where a string is
    expected) must not cost the whole notice, so keys that do not validate
    on their own are dropped and the rest are kept.
    """
    if isinstance(entity, ClaimData):
        return entity
    if entity is None:
        return ClaimData()

    if isinstance(entity, Mapping):
        data = dict(entity)
    else:
        data = dict(getattr(entity, "__dict__", {}))
    try:
        return ClaimData.model_validate(data)
    except ValidationError:
        pass

    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        try:
            ClaimData.model_validate({key: value})
        except ValidationError:
            logger.warning("Dropping invalid claim attribute %r", key)
            continue
        cleaned[key] = value
    return ClaimData.model_validate(cleaned)


def to_field_dictionary(
    entity: ClaimData | Mapping[str, Any] | None,
    *,
    company: CompanyProfile | None = None,
    today: date | None = None,
) -> FieldDictionary:
    """Map a claim to the flat merge-field dictionary.

    Args:
        entity: Claim record (ClaimData or camelCase mapping).
        company: Letterhead values. Defaults to the built-in profile.
        today: Date used for ``generatedDate``. Defaults to today.

    Returns:
        Dictionary keyed by every REQUIRED_MERGE_FIELDS name.
    """
    claim = coerce_claim(entity)
    company = company or CompanyProfile()

    customer_address = format_address(claim.customer_address)
    city_line = format_city_state_zip(
        claim.customer_city, claim.customer_state, claim.customer_zip
    )
    if city_line:
        customer_address = (
            f"{customer_address}\n{city_line}" if customer_address else city_line
        )

    fields: FieldDictionary = {
        "claimNumber": _text(claim.claim_number),
        "customerName": _text(claim.customer_name),
        "customerAddress": customer_address,
        "rentalAgreementNumber": _text(claim.rental_agreement_number),
        "vehicleDescription": compose_vehicle_description(claim),
        "damageDescription": _text(claim.description),
        "claimAmount": format_currency(claim.damages_total),
        "incidentDate": format_date(claim.accident_date),
        "generatedDate": format_date(today or date.today()),
        "adjustorName": _text(claim.insurance_adjuster),
        "adjustorPhone": _text(claim.insurance_phone_number),
        "companyName": company.name,
        "companyAddress": format_address(company.address),
        "companyLogo": company.logo,
    }
    return {name: fields.get(name, "") for name in REQUIRED_MERGE_FIELDS}


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()
