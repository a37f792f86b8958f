"""
Discount — invoice (percentage) and item (fixed price) codes.

    from bookflow import discount as D

    match D.validate(code, catalog, now, history, customer_id=42, draft=draft):
        case Ok(application):
            draft = D.apply(draft, application, policy=policy)
        case Error(e):
            show(e.key)  # "discount.expired", ...
"""

from bookflow.discount._types import (
    normalize_code,
    InvoiceDiscount,
    ItemDiscount,
    DiscountApplication,
    DiscountUsage,
    DiscountErrorKind,
    DiscountError,
)
from bookflow.discount._validate import (
    DiscountCatalog,
    make_invoice_discount,
    make_item_discount,
    usage_count,
    validate,
)
from bookflow.discount._apply import apply, remove

__all__ = (
    # Types
    "normalize_code",
    "InvoiceDiscount",
    "ItemDiscount",
    "DiscountApplication",
    "DiscountUsage",
    "DiscountErrorKind",
    "DiscountError",
    # Construction
    "make_invoice_discount",
    "make_item_discount",
    # Validation
    "DiscountCatalog",
    "usage_count",
    "validate",
    # Application
    "apply",
    "remove",
)
