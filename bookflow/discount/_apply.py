"""
Discount application — attach a validated discount to a draft and requote.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from bookflow._policy import Policy
from bookflow._types import stamp
from bookflow.discount._types import DiscountApplication
from bookflow.pricing import compute

if TYPE_CHECKING:
    from bookflow.order import OrderAggregate


def apply(
    draft: OrderAggregate,
    application: DiscountApplication,
    *,
    policy: Policy,
    at: datetime | None = None,
) -> OrderAggregate:
    """
    Put a discount on a draft.

    Replaces whatever discount the draft carried, so applying the same code
    twice gives the same discount_amount as applying it once.
    """
    pricing = compute(
        draft.items,
        draft.pricing.delivery_cost,
        application,
        draft.fine,
        policy=policy,
    )
    return replace(
        draft,
        discount=application,
        discount_code=application.code,
        pricing=pricing,
        updated_at=stamp(at),
    )


def remove(
    draft: OrderAggregate,
    *,
    policy: Policy,
    at: datetime | None = None,
) -> OrderAggregate:
    """Drop the draft's discount and requote."""
    if draft.discount is None and draft.discount_code is None:
        return draft
    pricing = compute(draft.items, draft.pricing.delivery_cost, None, draft.fine, policy=policy)
    return replace(
        draft,
        discount=None,
        discount_code=None,
        pricing=pricing,
        updated_at=stamp(at),
    )


__all__ = (
    "apply",
    "remove",
)
