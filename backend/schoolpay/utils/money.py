from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a number (or numeric string) to a 2dp Decimal."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"not a monetary amount: {value!r}")


def minor_to_major(amount_minor) -> Decimal:
    """Provider minor units (pesewas/kobo/cents) to major units: 5000 -> 50.00."""
    if isinstance(amount_minor, bool):
        raise ValueError("amount must be numeric")
    try:
        minor = Decimal(str(amount_minor))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"amount must be numeric, got {amount_minor!r}")
    return (minor / 100).quantize(CENTS, rounding=ROUND_HALF_UP)


def major_to_minor(amount) -> int:
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))
