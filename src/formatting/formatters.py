# src/formatting/formatters.py
"""Pure display formatters for merge-field values.

Every function here is total: absent or unparseable input yields an
empty string (or, for currency, the verbatim input) and never raises.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

# Accepted non-ISO date spellings, tried in order after fromisoformat().
_DATE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%Y/%m/%d",
)

_CENTS = Decimal("0.01")


def format_address(raw: str | Mapping[str, Any] | Any | None) -> str:
    """Normalize an address for multi-line display.

    Collapses runs of whitespace; comma-separated segments become
    newline-separated lines. Structured addresses (``line1``/``line2``)
    are joined first and then normalized the same way.
    """
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raw = _join_address_parts(raw)

    formatted = _WHITESPACE_RE.sub(" ", raw.strip())
    if not formatted:
        return ""
    if "," in formatted:
        return "\n".join(part.strip() for part in formatted.split(",") if part.strip())
    return formatted


def _join_address_parts(raw: Any) -> str:
    if isinstance(raw, Mapping):
        line1, line2 = raw.get("line1"), raw.get("line2")
    else:
        line1, line2 = getattr(raw, "line1", None), getattr(raw, "line2", None)
    return ", ".join(str(p) for p in (line1, line2) if p)


def format_city_state_zip(
    city: str | None = None,
    state: str | None = None,
    zip_code: str | None = None,
) -> str:
    """Format "City, ST 12345", omitting absent parts."""
    result = (city or "").strip()
    if state and state.strip():
        result = f"{result}, {state.strip()}" if result else state.strip()
    if zip_code and str(zip_code).strip():
        result = f"{result} {str(zip_code).strip()}" if result else str(zip_code).strip()
    return result


def parse_date(value: date | datetime | str | None) -> date | None:
    """Best-effort conversion of a date-like value to a date; None on failure."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_date(value: date | datetime | str | None) -> str:
    """Long-form date, e.g. "January 2, 2024"; empty string if unparseable."""
    parsed = parse_date(value)
    if parsed is None:
        if value:
            logger.debug("Unparseable date value: %r", value)
        return ""
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_currency(amount: float | int | Decimal | str | None) -> str:
    """US-dollar display string with two decimals, e.g. "$1,250.00".

    Invalid numeric strings are returned verbatim.
    """
    if amount is None:
        return ""
    if isinstance(amount, bool):
        return str(amount)
    try:
        value = Decimal(str(amount).strip().replace(",", "").lstrip("$"))
    except InvalidOperation:
        return str(amount)
    if not value.is_finite():
        return str(amount)

    value = value.quantize(_CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def compose_vehicle_description(entity: Any) -> str:
    """Year/make/model, then "(color)" and " - VIN: ..." when present.

    ``entity`` may be a ClaimData, any object with the same attribute
    names, or a mapping using the claim record's camelCase keys.
    """
    year = _attr(entity, "car_year", "carYear")
    make = _attr(entity, "car_make", "carMake")
    model = _attr(entity, "car_model", "carModel")
    color = _attr(entity, "car_color", "carColor")
    vin = _attr(entity, "car_vin", "carVIN")

    description = " ".join(str(p) for p in (year, make, model) if p)
    if color:
        description += f" ({color})"
    if vin:
        description += f" - VIN: {vin}"
    return description.strip()


def _attr(entity: Any, name: str, alias: str) -> Any:
    if entity is None:
        return None
    if isinstance(entity, Mapping):
        value = entity.get(alias)
        return entity.get(name) if value is None else value
    return getattr(entity, name, None)
