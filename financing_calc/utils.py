"""Utility functions for the financing calculator.

This module provides helpers for turning user input (form values, JSON
fields, command-line strings) into the numeric types the engine expects.
The strict parsers raise ``ValueError``; the ``coerce_*`` variants never
fail and fall back to a default instead, which is how scenario fields are
read.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, getcontext
from typing import Any

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

_TRUE_STRINGS = {"1", "true", "yes", "y", "on"}


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000"), thousands separators ("1,000,000") and
    shorthand with ``k``/``m`` suffixes (e.g. "500k" meaning 500_000).
    """
    cleaned = value.strip().lower().replace(",", "").replace(" ", "")
    factor = Decimal(1)
    if cleaned.endswith("k"):
        factor = Decimal(1_000)
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = Decimal(1_000_000)
        cleaned = cleaned[:-1]
    return decimal_from_str(cleaned) * factor


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a finite ``Decimal``.

    Raises ``ValueError`` if conversion fails or the value is NaN/infinite.
    """
    try:
        result = Decimal(value.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def coerce_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Return ``value`` as a ``Decimal``, or ``default`` when it is unusable.

    Missing values, booleans, non-numeric strings and NaN/infinity all map to
    ``default``. The whole string has to be a number: unlike a browser's
    ``parseFloat``, a trailing-garbage value such as "12abc" is not read as
    12 but falls back to ``default`` too.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        return default
    try:
        return parse_amount(value)
    except ValueError:
        return default


def coerce_int(value: Any, default: int = 0) -> int:
    """Return ``value`` truncated to an ``int``, or ``default`` if unusable.

    "12.7" becomes 12, the same way a form's integer field reads it.
    """
    number = coerce_decimal(value, default=None)  # type: ignore[arg-type]
    if number is None:
        return default
    return int(number)


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)
