# src/mapping/sample_data.py
"""Built-in sample merge data for template previews."""

from __future__ import annotations

from datetime import date

from noiengine.core.fields import REQUIRED_MERGE_FIELDS
from noiengine.core.models import FieldDictionary
from noiengine.formatting.formatters import format_date

SAMPLE_DATA: FieldDictionary = {
    "claimNumber": "CL-2023-00123",
    "customerName": "John Q. Sample",
    "customerAddress": "123 Main Street\nAnytown\nCA 90210",
    "rentalAgreementNumber": "RA-9876543",
    "vehicleDescription": "2022 Toyota Camry (White) - VIN: 1HGCM82633A123456",
    "damageDescription": "Front bumper damage and scratches to passenger side door",
    "claimAmount": "$1,250.00",
    "incidentDate": "December 15, 2023",
    "generatedDate": "",
    "adjustorName": "Jane Smith",
    "adjustorPhone": "(555) 555-1234",
    "companyName": "Budget Car Rental",
    "companyAddress": "456 Corporate Plaza\nSuite 300\nBusiness City\nCA 94123",
    "companyLogo": "[COMPANY LOGO]",
}


def sample_fields(
    overrides: dict[str, object] | None = None,
    *,
    today: date | None = None,
) -> FieldDictionary:
    """Return the sample dictionary with ``overrides`` applied.

    Only known merge fields may be overridden; other keys are ignored.
    """
    fields = dict(SAMPLE_DATA)
    fields["generatedDate"] = format_date(today or date.today())
    for key, value in (overrides or {}).items():
        if key in REQUIRED_MERGE_FIELDS:
            fields[key] = "" if value is None else str(value)
    return fields
