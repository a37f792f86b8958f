"""
Discount validation — decide whether a code may be redeemed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING

from bookflow._types import Error, Ok, Result
from bookflow.discount._types import (
    DiscountApplication,
    DiscountError,
    DiscountErrorKind,
    DiscountUsage,
    InvoiceDiscount,
    ItemDiscount,
    normalize_code,
)
from bookflow.money import MoneyLike, money

if TYPE_CHECKING:
    from bookflow.order import OrderAggregate

type DiscountCatalog = (
    Mapping[str, DiscountApplication] | Callable[[str], DiscountApplication | None]
)
"""Codes to discounts: a mapping keyed by normalised code, or a lookup function."""

# ═══════════════════════════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════════════════════════


def make_invoice_discount(
    code: str,
    value: MoneyLike,
    usage_limit: int,
    start_date: date,
    end_date: date,
    *,
    is_active: bool = True,
    minimum_amount: MoneyLike | None = None,
    maximum_discount: MoneyLike | None = None,
) -> InvoiceDiscount:
    """
    Build a percentage discount.

    Raises:
        ValueError: value outside (0, 100], inverted window, usage_limit < 1.
    """
    return InvoiceDiscount(
        code=code,
        value=money(value),
        usage_limit=usage_limit,
        start_date=start_date,
        end_date=end_date,
        is_active=is_active,
        minimum_amount=money(minimum_amount) if minimum_amount is not None else None,
        maximum_discount=money(maximum_discount) if maximum_discount is not None else None,
    )


def make_item_discount(
    code: str,
    book_id: int,
    original_price: MoneyLike,
    discounted_price: MoneyLike,
    usage_limit: int,
    start_date: date,
    end_date: date,
    *,
    is_active: bool = True,
) -> Result[ItemDiscount, DiscountError]:
    """
    Build a fixed-price book discount.

    A discounted price that is not strictly below the book's price is
    refused as MALFORMED_ITEM_DISCOUNT, so it can never be stored or redeemed.

    Example:
        match make_item_discount("SALE", 7, "20.00", "20.00", 1, start, end):
            case Error(e):
                e.kind  # DiscountErrorKind.MALFORMED_ITEM_DISCOUNT
    """
    original = money(original_price)
    discounted = money(discounted_price)
    if discounted < 0 or discounted >= original:
        return Error(DiscountError(
            kind=DiscountErrorKind.MALFORMED_ITEM_DISCOUNT,
            message=f"Discounted price {discounted} must be below {original}",
            params={
                "code": normalize_code(code),
                "original_price": str(original),
                "discounted_price": str(discounted),
            },
        ))

    return Ok(ItemDiscount(
        code=code,
        book_id=book_id,
        original_price=original,
        discounted_price=discounted,
        usage_limit=usage_limit,
        start_date=start_date,
        end_date=end_date,
        is_active=is_active,
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════════


def _lookup(catalog: DiscountCatalog, code: str) -> DiscountApplication | None:
    if isinstance(catalog, Mapping):
        return catalog.get(code)
    return catalog(code)


def usage_count(
    code: str,
    usage_history: Iterable[DiscountUsage],
    customer_id: int,
) -> int:
    normalized = normalize_code(code)
    return sum(
        1
        for usage in usage_history
        if usage.customer_id == customer_id and normalize_code(usage.code) == normalized
    )


def _refuse(kind: DiscountErrorKind, code: str, message: str) -> Error[DiscountError]:
    return Error(DiscountError(kind=kind, message=message, params={"code": code}))


def validate(
    code: str,
    catalog: DiscountCatalog,
    now: date | datetime,
    usage_history: Iterable[DiscountUsage],
    *,
    customer_id: int,
    draft: OrderAggregate | None = None,
) -> Result[DiscountApplication, DiscountError]:
    """
    Check a code a customer typed in.

    Checks run in order and the first failure is returned:
        unknown or empty code       → INVALID_CODE
        switched off                → INACTIVE
        today outside the window    → EXPIRED
        customer used it up         → USAGE_LIMIT_EXCEEDED
        already on this draft       → ALREADY_APPLIED
        book discount, book absent  → INVALID_CODE

    The window compares calendar days only.
    """
    normalized = normalize_code(code)
    if not normalized:
        return _refuse(DiscountErrorKind.INVALID_CODE, normalized, "Discount code is empty")

    discount = _lookup(catalog, normalized)
    if discount is None:
        return _refuse(DiscountErrorKind.INVALID_CODE, normalized, f"Unknown code {normalized}")

    if not discount.is_active:
        return _refuse(DiscountErrorKind.INACTIVE, normalized, f"Code {normalized} is not active")

    if not discount.is_effective(now):
        return _refuse(
            DiscountErrorKind.EXPIRED,
            normalized,
            f"Code {normalized} is valid {discount.start_date} to {discount.end_date}",
        )

    if usage_count(normalized, usage_history, customer_id) >= discount.usage_limit:
        return _refuse(
            DiscountErrorKind.USAGE_LIMIT_EXCEEDED,
            normalized,
            f"Code {normalized} already used {discount.usage_limit} time(s)",
        )

    if draft is not None and draft.discount_code == normalized:
        return _refuse(
            DiscountErrorKind.ALREADY_APPLIED,
            normalized,
            f"Code {normalized} is already applied",
        )

    match discount:
        case ItemDiscount() if draft is not None and not discount.matches(draft.items):
            return _refuse(
                DiscountErrorKind.INVALID_CODE,
                normalized,
                f"Code {normalized} does not apply to any book in this order",
            )
        case _:
            return Ok(discount)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "DiscountCatalog",
    "make_invoice_discount",
    "make_item_discount",
    "usage_count",
    "validate",
)
