"""
Discount types — the two kinds of code a customer can redeem.

DiscountApplication is a closed union with an explicit ``kind`` tag:

    match application:
        case InvoiceDiscount(value=percent):
            ...
        case ItemDiscount(book_id=book):
            ...
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Literal

from bookflow._types import OrderItem, as_date
from bookflow.money import HUNDRED, ZERO, Money, money, percent_of

# ═══════════════════════════════════════════════════════════════════════════════
# Codes
# ═══════════════════════════════════════════════════════════════════════════════


def normalize_code(code: str) -> str:
    """Codes are case-insensitive and ignore surrounding whitespace."""
    return code.strip().upper()


def _check_window(start_date: date, end_date: date, usage_limit: int) -> None:
    if start_date > end_date:
        raise ValueError(f"start_date {start_date} is after end_date {end_date}")
    if usage_limit < 1:
        raise ValueError(f"usage_limit must be >= 1, got {usage_limit}")


# ═══════════════════════════════════════════════════════════════════════════════
# Invoice Discount
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class InvoiceDiscount:
    """
    Percentage off the whole order subtotal.

    minimum_amount: subtotal below this yields no discount.
    maximum_discount: upper bound on the discount amount.
    """

    code: str
    value: Money
    usage_limit: int
    start_date: date
    end_date: date
    is_active: bool = True
    minimum_amount: Money | None = None
    maximum_discount: Money | None = None
    kind: Literal["invoice"] = field(default="invoice", init=False)

    def __post_init__(self) -> None:
        value = money(self.value)
        if not ZERO < value <= HUNDRED:
            raise ValueError(f"discount value must be in (0, 100], got {value}")
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "code", normalize_code(self.code))
        _check_window(self.start_date, self.end_date, self.usage_limit)
        if self.minimum_amount is not None:
            object.__setattr__(self, "minimum_amount", money(self.minimum_amount))
        if self.maximum_discount is not None:
            object.__setattr__(self, "maximum_discount", money(self.maximum_discount))

    def is_effective(self, on: date | datetime) -> bool:
        return self.is_active and self.start_date <= as_date(on) <= self.end_date

    def amount_for(self, items: Sequence[OrderItem], subtotal: Money) -> Money:
        """Unrounded discount for a subtotal."""
        if self.minimum_amount is not None and subtotal < self.minimum_amount:
            return ZERO
        amount = percent_of(subtotal, self.value)
        if self.maximum_discount is not None and amount > self.maximum_discount:
            return self.maximum_discount
        return amount


# ═══════════════════════════════════════════════════════════════════════════════
# Item Discount
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ItemDiscount:
    """
    Fixed sale price for one book.

    The discounted price must be strictly below the original. Direct
    construction raises ValueError; make_item_discount reports the same
    problem as MALFORMED_ITEM_DISCOUNT for data coming from outside.
    """

    code: str
    book_id: int
    original_price: Money
    discounted_price: Money
    usage_limit: int
    start_date: date
    end_date: date
    is_active: bool = True
    kind: Literal["item"] = field(default="item", init=False)

    def __post_init__(self) -> None:
        original = money(self.original_price)
        discounted = money(self.discounted_price)
        if discounted < ZERO or discounted >= original:
            raise ValueError(
                f"discounted_price {discounted} must be in [0, {original})"
            )
        object.__setattr__(self, "original_price", original)
        object.__setattr__(self, "discounted_price", discounted)
        object.__setattr__(self, "code", normalize_code(self.code))
        _check_window(self.start_date, self.end_date, self.usage_limit)

    def is_effective(self, on: date | datetime) -> bool:
        return self.is_active and self.start_date <= as_date(on) <= self.end_date

    def matches(self, items: Sequence[OrderItem]) -> bool:
        return any(item.book_id == self.book_id for item in items)

    def amount_for(self, items: Sequence[OrderItem], subtotal: Money) -> Money:
        """
        Catalog saving on one unit when the book is in the order.

        Measured against original_price, not the line's unit price.
        """
        if self.matches(items):
            return self.original_price - self.discounted_price
        return ZERO


type DiscountApplication = InvoiceDiscount | ItemDiscount


# ═══════════════════════════════════════════════════════════════════════════════
# Usage History
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DiscountUsage:
    """One past redemption of a code by a customer."""

    code: str
    customer_id: int
    used_at: datetime | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class DiscountErrorKind(Enum):
    """
    Why a code was refused. Values are message keys.

    Validation reports the first failing check in declaration order.
    """

    INVALID_CODE = "discount.invalid_code"
    INACTIVE = "discount.inactive"
    EXPIRED = "discount.expired"
    USAGE_LIMIT_EXCEEDED = "discount.usage_limit_exceeded"
    ALREADY_APPLIED = "discount.already_applied"
    MALFORMED_ITEM_DISCOUNT = "discount.malformed_item_discount"


@dataclass(frozen=True, slots=True)
class DiscountError:
    kind: DiscountErrorKind
    message: str
    params: Mapping[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.kind.value


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "normalize_code",
    "InvoiceDiscount",
    "ItemDiscount",
    "DiscountApplication",
    "DiscountUsage",
    "DiscountErrorKind",
    "DiscountError",
)
