"""
Pricing computation.

Sum lines, tax the subtotal, take the discount off, add the fine. Values are
kept exact until the Pricing is built; each component is then rounded once.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from bookflow._policy import Policy
from bookflow._types import OrderItem
from bookflow.money import ZERO, Money, MoneyLike, money, total
from bookflow.pricing._types import Pricing

if TYPE_CHECKING:
    from bookflow.discount import DiscountApplication
    from bookflow.fine import Fine
    from bookflow.order import OrderAggregate


# ═══════════════════════════════════════════════════════════════════════════════
# Compute
# ═══════════════════════════════════════════════════════════════════════════════


def subtotal_of(items: Sequence[OrderItem]) -> Money:
    """Exact sum of line totals."""
    return total(item.line_total for item in items)


def compute(
    items: Sequence[OrderItem],
    delivery_cost: MoneyLike,
    discount: DiscountApplication | None = None,
    fine: Fine | None = None,
    *,
    policy: Policy,
) -> Pricing:
    """
    Price a set of items.

    Example:
        items = [OrderItem(book_id=1, quantity=2, unit_price="9.99")]
        compute(items, "5.00", policy=Policy())
        # Pricing(subtotal=19.98, tax_amount=1.60, delivery_cost=5.00,
        #         discount_amount=0.00, fine_amount=0.00, final_total=26.58)
    """
    delivery = money(delivery_cost)
    if delivery < ZERO:
        raise ValueError(f"delivery_cost must be >= 0, got {delivery}")

    subtotal = subtotal_of(items)
    tax = subtotal * policy.tax_rate
    discount_amount = (
        discount.amount_for(items, subtotal) if discount is not None else ZERO
    )
    fine_amount = fine.amount if fine is not None else ZERO

    return Pricing.of(
        subtotal=subtotal,
        tax_amount=tax,
        delivery_cost=delivery,
        discount_amount=discount_amount,
        fine_amount=fine_amount,
    )


def reprice(
    order: OrderAggregate,
    *,
    policy: Policy,
    fine: Fine | None = None,
) -> Pricing:
    """
    Price an existing request again, keeping its delivery cost and discount.

    A request decoded from the backend may carry only a discount code. Its
    discount amount is then kept as the backend reported it.
    """
    if order.discount is None and order.discount_code is not None:
        base = compute(order.items, order.pricing.delivery_cost, None, fine, policy=policy)
        return Pricing.of(
            subtotal=base.subtotal,
            tax_amount=base.tax_amount,
            delivery_cost=base.delivery_cost,
            discount_amount=order.pricing.discount_amount,
            fine_amount=base.fine_amount,
        )
    return compute(order.items, order.pricing.delivery_cost, order.discount, fine, policy=policy)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "subtotal_of",
    "compute",
    "reprice",
)
