"""Canonical forms for comparing line item fields.

Amount-like values are compared as fixed-point strings built from ``Decimal``
so that ``-100``, ``"-100.00"`` and ``Decimal("-100.001")`` agree without any
float rounding.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO_KEY = "0"


def to_decimal(value: Decimal | int | float | str | None) -> Decimal | None:
    """Coerce a raw field value into a Decimal, or None when absent."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # repr round-trips, str(Decimal(float)) would expose binary noise
        return Decimal(repr(value))
    text = str(value).strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Not a decimal value: {value!r}") from exc


def normalize_amount(value: Decimal | int | float | str | None) -> str:
    """Normalize an amount, quantity or balance.

    Null, empty and every spelling of zero collapse to ``"0"``. Anything else
    is rounded half-up to cents and rendered in fixed-point notation.
    """
    number = to_decimal(value)
    if number is None:
        return ZERO_KEY
    rounded = number.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        return ZERO_KEY
    return format(rounded, "f")


def normalize_symbol(value: str | None) -> str:
    if not value:
        return ""
    return value.strip().upper()


def normalize_text(value: str | None) -> str:
    if not value:
        return ""
    return value.strip().lower()


def absolute_amount(value: Decimal | int | float | str | None) -> Decimal:
    """Return ``abs(value)`` as a Decimal, treating missing values as zero."""
    number = to_decimal(value)
    if number is None:
        return Decimal("0")
    return abs(number)
