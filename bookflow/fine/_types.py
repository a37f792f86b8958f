"""
Fine types — overdue charges on borrowed books.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from bookflow._types import PaymentMethod
from bookflow.money import Money

# ═══════════════════════════════════════════════════════════════════════════════
# Payment Status
# ═══════════════════════════════════════════════════════════════════════════════


class FinePaymentStatus(Enum):
    """
    Settlement state of a fine.

    Lifecycle:
        UNPAID → PENDING_CASH_PAYMENT → PAID
                                      → FAILED
               → PAID (card / wallet approved)
               → FAILED (card / wallet declined)
    """

    UNPAID = "unpaid"
    PENDING_CASH_PAYMENT = "pending_cash_payment"
    PAID = "paid"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FinePaymentStatus.PAID, FinePaymentStatus.FAILED)


# ═══════════════════════════════════════════════════════════════════════════════
# Fine
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Fine:
    """
    An overdue charge.

    amount is days_overdue * daily_rate rounded to cents; it never changes
    once assessed. A new assessment produces a new Fine.
    """

    due_date: date
    returned_on: date
    days_overdue: int
    daily_rate: Money
    amount: Money
    payment_status: FinePaymentStatus = FinePaymentStatus.UNPAID
    payment_method: PaymentMethod | None = None

    @property
    def is_settled(self) -> bool:
        return self.payment_status == FinePaymentStatus.PAID


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class FineErrorKind(Enum):
    """Kinds of fine errors. Values are message keys."""

    INVALID_PAYMENT_TRANSITION = "fine.invalid_payment_transition"


@dataclass(frozen=True, slots=True)
class FineError:
    """
    Rejected payment-status change.

    params carries ``from`` and ``to`` status values for the message template.
    """

    kind: FineErrorKind
    message: str
    params: Mapping[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.kind.value


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "FinePaymentStatus",
    "Fine",
    "FineErrorKind",
    "FineError",
)
