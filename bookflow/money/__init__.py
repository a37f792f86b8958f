"""
Money — fixed-point currency arithmetic.

    from bookflow import money as M

    M.round2(M.money("19.98") * M.money("0.08"))  # Decimal("1.60")
"""

from bookflow.money._money import (
    Money,
    MoneyLike,
    ZERO,
    CENT,
    HUNDRED,
    money,
    round2,
    clamp_zero,
    percent_of,
    total,
    format_amount,
)

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
