"""Decimal helpers shared by the engine."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from lamf_core.exceptions import ValidationError

MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Convert ints, floats and strings to Decimal without float noise."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"{field_name} must be numeric, got {value!r}") from None
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite, got {value!r}")
    return result


def quantize_money(value: Decimal) -> Decimal:
    """Round to two places, half up."""
    return value.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part / whole * 100``, or zero when ``whole`` is not positive."""
    if whole <= 0:
        return ZERO
    return part / whole * HUNDRED


def collateral_value(units: Decimal, nav_per_unit: Decimal) -> Decimal:
    """Market value of a holding: units x NAV, rounded to paise."""
    return quantize_money(units * nav_per_unit)
