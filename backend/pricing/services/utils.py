from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ..exceptions import PricingValidationError

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def q2(amount) -> Decimal:
    """Quantize a money amount to cents, half-up."""
    return d(amount).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def q4(amount) -> Decimal:
    return d(amount).quantize(FOURPLACES, rounding=ROUND_HALF_UP)


def parse_non_negative(val, field: str) -> Decimal:
    """
    Parse a user-entered rate or quantity.

    ``None`` and blank strings are unfilled cells and count as zero. Anything
    else must be a finite, non-negative number.
    """
    if val is None or (isinstance(val, str) and not val.strip()):
        return ZERO
    if isinstance(val, bool):
        raise PricingValidationError(field, f"{field} must be a number, got {val!r}")
    try:
        num = d(val.strip() if isinstance(val, str) else val)
    except (InvalidOperation, ValueError, TypeError):
        raise PricingValidationError(field, f"{field} must be a number, got {val!r}")
    if not num.is_finite():
        raise PricingValidationError(field, f"{field} must be a finite number, got {val!r}")
    if num < ZERO:
        raise PricingValidationError(field, f"{field} cannot be negative, got {val!r}")
    return num
