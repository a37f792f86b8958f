"""
Fine — overdue charges and their payment state.

    from bookflow import fine as F

    charge = F.assess(due, returned, daily_rate=policy.require_fine_daily_rate())
    if charge is not None:
        match F.record_payment(charge, PaymentMethod.CASH):
            case Ok(pending):
                ...
            case Error(e):
                ...
"""

from bookflow.fine._types import (
    FinePaymentStatus,
    Fine,
    FineErrorKind,
    FineError,
)
from bookflow.fine._assess import (
    days_overdue,
    assess,
    record_payment,
    confirm_cash_payment,
    reissue,
    is_deposit_frozen,
    refund_due,
)

__all__ = (
    # Types
    "FinePaymentStatus",
    "Fine",
    "FineErrorKind",
    "FineError",
    # Assessment
    "days_overdue",
    "assess",
    # Payment
    "record_payment",
    "confirm_cash_payment",
    "reissue",
    # Deposit
    "is_deposit_frozen",
    "refund_due",
)
