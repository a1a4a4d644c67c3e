"""Utility functions shared across the invoice GST service."""
from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from dateutil import parser

CENT = Decimal("0.01")
ZERO = Decimal("0")


def parse_date(value: object) -> Optional[date]:
    """Parse a date string into a date object; returns None on failure."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return parser.parse(str(value), dayfirst=False, yearfirst=True).date()
    except (ValueError, TypeError, OverflowError):
        try:
            return parser.parse(str(value), dayfirst=True, yearfirst=True).date()
        except (ValueError, TypeError, OverflowError):
            return None


def to_decimal(value: object, default: Decimal = ZERO) -> Decimal:
    """Convert numbers and numeric strings to Decimal; blanks become ``default``."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def round_money(value: Decimal) -> Decimal:
    """Round half-up to whole paise.

    Raises ValueError when the result needs more digits than the decimal
    context carries (28 significant digits).
    """
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"{value} is too large to round to paise") from None


def approx_equal(a: Optional[Decimal], b: Optional[Decimal], tolerance: Decimal = Decimal("0.01")) -> bool:
    """Check if two money-like values are approximately equal within tolerance.

    Tolerance is absolute (one paisa by default).
    """
    if a is None or b is None:
        return False
    return abs(a - b) <= tolerance


def non_negative(value: Optional[Decimal]) -> bool:
    """Return True if value is None or >= 0."""
    if value is None:
        return True
    return value >= 0


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def normalize_state(value: Optional[str]) -> Optional[str]:
    """Case-folded, trimmed state name, or None when blank."""
    if is_blank(value):
        return None
    return str(value).strip().lower()
