"""Monetary arithmetic: two decimal places, half-up rounding."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_PLACES = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Convert ints, floats, strings and Decimals to Decimal without float noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a monetary value: {value!r}") from exc


def normalize(value) -> Decimal:
    """Quantize to cents."""
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def multiply(base, rate) -> Decimal:
    """``base * rate`` rounded to cents."""
    if base is None or rate is None:
        return ZERO
    return normalize(to_decimal(base) * to_decimal(rate))


def is_positive(value) -> bool:
    return value is not None and to_decimal(value) > 0

