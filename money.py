"""Exact decimal helpers for monetary values.

Money is always carried as ``decimal.Decimal``. Floats only appear as the last
step of a calculation that is meant for display (percentages).
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
TENTH = Decimal("0.1")


def to_decimal(value: Any) -> Decimal:
    """Parse a monetary value into a Decimal.

    Accepts Decimal, int, str and float (floats go through ``str`` so that
    0.1 stays 0.1). Anything that does not parse, including None, is 0.

    Args:
        value: Raw value from a form, a database row or an API payload.

    Returns:
        The parsed Decimal, or Decimal("0") on failure.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        return Decimal("0")
    if isinstance(value, (int, float)):
        value = str(value)
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip().replace(",", ""))
        except InvalidOperation:
            return Decimal("0")
        if not parsed.is_finite():
            return Decimal("0")
        return parsed
    return Decimal("0")


def parse_decimal(value: Any):
    """Strict variant of to_decimal that returns None when parsing fails."""
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def round2(value: Any) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round1(value: Any) -> Decimal:
    """Round to one decimal place, half up."""
    return to_decimal(value).quantize(TENTH, rounding=ROUND_HALF_UP)


def decimal_places(value: Decimal) -> int:
    """Count fractional digits of value, read from its exponent.

    ``Decimal("1.50")`` has two places and ``Decimal("1E+2")`` has none.
    """
    if not value.is_finite():
        return 0
    return max(0, -value.as_tuple().exponent)


def to_float(value: Any, places: int = 2) -> float:
    """Convert to float after rounding. Display only."""
    quantum = Decimal(1).scaleb(-places)
    return float(to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_money(value: Any) -> str:
    """Render a value like ``$1,234.50``."""
    amount = round2(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def to_storage(value: Decimal) -> str:
    """Canonical string stored in TEXT money columns."""
    return format(round2(value), "f")
