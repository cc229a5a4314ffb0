# Overview: Shared error types and payload coercion helpers for services and routes.

from __future__ import annotations

import math
import re
from typing import Any


NUMERIC_JUNK_RE = re.compile(r"[^0-9.]")
FIRST_DIGIT_RE = re.compile(r"[0-9]")


class ValidationError(ValueError):
    """400-level input problem the operator can correct."""


class ConfigurationError(ValueError):
    """Configuration anomaly (e.g. a tax rate of -100%) rejected before arithmetic."""


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_number(value: Any, *, field: str, default: float | None = None) -> float:
    """
    Coerce a JSON/form value to a finite float.

    Booleans are rejected (bool is an int subclass); blank values fall back to
    `default` when one is given.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a finite number")
    return number


def to_quantity(value: Any, *, field: str = "quantity", default: int | None = None) -> int:
    """Quantities are whole units; '2.0' is accepted, '2.5' is not."""
    number = to_number(value, field=field, default=default)
    if not float(number).is_integer():
        raise ValidationError(f"{field} must be a whole number")
    return int(number)


def clean_spreadsheet_number(value: Any) -> float | None:
    """
    Lenient numeric parse for imported cells: strip everything but digits and
    the decimal point ("Rs 1,250.00" -> 1250.0). A minus sign before the first
    digit is kept ("Rs -5" -> -5.0), as a numeric cell would keep it. Returns
    None when nothing numeric remains.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(float(value)) else None
    raw = str(value)
    text = NUMERIC_JUNK_RE.sub("", raw)
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    first_digit = FIRST_DIGIT_RE.search(raw)
    if first_digit and "-" in raw[: first_digit.start()]:
        return -number
    return number
