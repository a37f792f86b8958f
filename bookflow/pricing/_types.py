"""
Pricing types — the money breakdown of a request.
"""

from __future__ import annotations

from dataclasses import dataclass

from bookflow.money import ZERO, Money, MoneyLike, clamp_zero, money, round2

# ═══════════════════════════════════════════════════════════════════════════════
# Pricing
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Pricing:
    """
    Cent-rounded price breakdown.

    Invariant:
        final_total == max(0, subtotal + delivery_cost + tax_amount
                              - discount_amount + fine_amount)

    Build through Pricing.of (or pricing.compute); direct construction
    checks the invariant and raises ValueError if it does not hold.
    """

    subtotal: Money
    tax_amount: Money
    delivery_cost: Money
    discount_amount: Money
    fine_amount: Money
    final_total: Money

    def __post_init__(self) -> None:
        expected = _final(
            self.subtotal,
            self.tax_amount,
            self.delivery_cost,
            self.discount_amount,
            self.fine_amount,
        )
        if money(self.final_total) != expected:
            raise ValueError(
                f"final_total {self.final_total} does not match components ({expected})"
            )

    @classmethod
    def of(
        cls,
        subtotal: MoneyLike,
        tax_amount: MoneyLike,
        delivery_cost: MoneyLike,
        discount_amount: MoneyLike = ZERO,
        fine_amount: MoneyLike = ZERO,
    ) -> Pricing:
        """
        Round each component once and derive final_total from them.

        Example:
            Pricing.of("19.98", "1.60", "5.00").final_total  # Decimal("26.58")
        """
        parts = [
            round2(subtotal),
            round2(tax_amount),
            round2(delivery_cost),
            round2(discount_amount),
            round2(fine_amount),
        ]
        return cls(*parts, final_total=_final(*parts))

    @classmethod
    def empty(cls) -> Pricing:
        return cls.of(ZERO, ZERO, ZERO)

    @property
    def payable(self) -> bool:
        return self.final_total > ZERO


def _final(
    subtotal: MoneyLike,
    tax_amount: MoneyLike,
    delivery_cost: MoneyLike,
    discount_amount: MoneyLike,
    fine_amount: MoneyLike,
) -> Money:
    return clamp_zero(
        money(subtotal)
        + money(delivery_cost)
        + money(tax_amount)
        - money(discount_amount)
        + money(fine_amount)
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Pricing",)
