"""
Money — Decimal helpers for currency values.

Every amount in bookflow is a ``Decimal``. Floats are converted through
their shortest repr so ``9.99`` stays ``Decimal("9.99")`` instead of the
binary approximation. Rounding happens only where a value is presented or
totalled (``round2``), never between intermediate steps.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# ═══════════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════════

type Money = Decimal
"""Alias used in signatures that carry a currency amount."""

type MoneyLike = Decimal | int | float | str

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

# ═══════════════════════════════════════════════════════════════════════════════
# Conversion
# ═══════════════════════════════════════════════════════════════════════════════


def money(value: MoneyLike) -> Money:
    """
    Convert a number or numeric string to Decimal.

    Raises:
        TypeError: bools and non-numeric types.
        ValueError: unparsable strings, NaN and infinities.
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a currency amount")

    match value:
        case Decimal():
            result = value
        case int():
            result = Decimal(value)
        case float():
            result = Decimal(repr(value))
        case str():
            try:
                result = Decimal(value.strip())
            except InvalidOperation:
                raise ValueError(f"not a currency amount: {value!r}") from None
        case _:
            raise TypeError(f"cannot convert {type(value).__name__} to money")

    if not result.is_finite():
        raise ValueError(f"currency amount must be finite, got {value!r}")
    return result


def round2(value: MoneyLike) -> Money:
    """Round half-up to cents."""
    return money(value).quantize(CENT, rounding=ROUND_HALF_UP)


def clamp_zero(value: MoneyLike) -> Money:
    """Negative amounts become zero."""
    amount = money(value)
    return amount if amount > ZERO else ZERO


def percent_of(amount: MoneyLike, percent: MoneyLike) -> Money:
    """``amount * percent / 100`` without intermediate rounding."""
    return money(amount) * money(percent) / HUNDRED


def total(values: Iterable[MoneyLike]) -> Money:
    """Exact sum of amounts."""
    return sum((money(v) for v in values), start=ZERO)


def format_amount(value: MoneyLike) -> str:
    """Two-decimal string, the form the backend sends and accepts."""
    return f"{round2(value):.2f}"


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Money",
    "MoneyLike",
    "ZERO",
    "CENT",
    "HUNDRED",
    "money",
    "round2",
    "clamp_zero",
    "percent_of",
    "total",
    "format_amount",
)
