"""
Pricing — subtotal, tax, delivery, discount and fine into one total.

    from bookflow import pricing as P

    quote = P.compute(order.items, "5.00", discount, fine, policy=policy)
    quote.final_total
"""

from bookflow.pricing._types import Pricing
from bookflow.pricing._compute import subtotal_of, compute, reprice

__all__ = (
    "Pricing",
    "subtotal_of",
    "compute",
    "reprice",
)
