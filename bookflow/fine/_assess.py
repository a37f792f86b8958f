"""
Fine assessment and payment — pure functions over Fine values.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

from bookflow._types import Error, Ok, PaymentMethod, Result, as_date
from bookflow.fine._types import Fine, FineError, FineErrorKind, FinePaymentStatus
from bookflow.money import ZERO, Money, MoneyLike, clamp_zero, money, round2

# ═══════════════════════════════════════════════════════════════════════════════
# Assessment
# ═══════════════════════════════════════════════════════════════════════════════


def days_overdue(due_date: date | datetime, returned_on: date | datetime) -> int:
    """Whole calendar days past the due date. Zero when on time."""
    return max((as_date(returned_on) - as_date(due_date)).days, 0)


def assess(
    due_date: date | datetime,
    returned_on: date | datetime,
    *,
    daily_rate: MoneyLike,
) -> Fine | None:
    """
    Assess the overdue fine for a return.

    Time of day is ignored: a book due on the 10th and returned late on the
    10th is on time. Returns None when not overdue.

    Example:
        fine = assess(date(2024, 1, 10), date(2024, 1, 15), daily_rate="1.00")
        fine.days_overdue  # 5
        fine.amount        # Decimal("5.00")
    """
    rate = money(daily_rate)
    if rate < ZERO:
        raise ValueError(f"daily_rate must be >= 0, got {rate}")

    days = days_overdue(due_date, returned_on)
    if days == 0:
        return None

    return Fine(
        due_date=as_date(due_date),
        returned_on=as_date(returned_on),
        days_overdue=days,
        daily_rate=rate,
        amount=round2(rate * days),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Payment
# ═══════════════════════════════════════════════════════════════════════════════

_PAYMENT_EDGES: dict[FinePaymentStatus, frozenset[FinePaymentStatus]] = {
    FinePaymentStatus.UNPAID: frozenset({
        FinePaymentStatus.PENDING_CASH_PAYMENT,
        FinePaymentStatus.PAID,
        FinePaymentStatus.FAILED,
    }),
    FinePaymentStatus.PENDING_CASH_PAYMENT: frozenset({
        FinePaymentStatus.PAID,
        FinePaymentStatus.FAILED,
    }),
    FinePaymentStatus.PAID: frozenset(),
    FinePaymentStatus.FAILED: frozenset(),
}


def _invalid(fine: Fine, to: FinePaymentStatus) -> Error[FineError]:
    return Error(FineError(
        kind=FineErrorKind.INVALID_PAYMENT_TRANSITION,
        message=f"Fine cannot move from {fine.payment_status.value} to {to.value}",
        params={"from": fine.payment_status.value, "to": to.value},
    ))


def _move(
    fine: Fine,
    to: FinePaymentStatus,
    method: PaymentMethod | None,
) -> Result[Fine, FineError]:
    if to not in _PAYMENT_EDGES[fine.payment_status]:
        return _invalid(fine, to)
    return Ok(replace(fine, payment_status=to, payment_method=method))


def record_payment(
    fine: Fine,
    method: PaymentMethod,
    *,
    approved: bool = True,
) -> Result[Fine, FineError]:
    """
    Record a customer's payment attempt.

    Cash waits for an admin or agent to confirm it was received. Card and
    wallet payments settle at once, as paid or failed depending on the
    gateway's answer.

    Only an unpaid fine accepts a payment attempt.
    """
    if fine.payment_status != FinePaymentStatus.UNPAID:
        target = (
            FinePaymentStatus.PENDING_CASH_PAYMENT
            if method is PaymentMethod.CASH
            else FinePaymentStatus.PAID
        )
        return _invalid(fine, target)

    match method:
        case PaymentMethod.CASH:
            return _move(fine, FinePaymentStatus.PENDING_CASH_PAYMENT, method)
        case PaymentMethod.CARD | PaymentMethod.WALLET:
            target = FinePaymentStatus.PAID if approved else FinePaymentStatus.FAILED
            return _move(fine, target, method)


def confirm_cash_payment(fine: Fine, *, received: bool) -> Result[Fine, FineError]:
    """Admin or agent confirms whether the cash actually arrived."""
    target = FinePaymentStatus.PAID if received else FinePaymentStatus.FAILED
    if fine.payment_status != FinePaymentStatus.PENDING_CASH_PAYMENT:
        return _invalid(fine, target)
    return _move(fine, target, fine.payment_method)


def reissue(fine: Fine) -> Result[Fine, FineError]:
    """A failed fine is charged again as a fresh unpaid fine."""
    if fine.payment_status != FinePaymentStatus.FAILED:
        return _invalid(fine, FinePaymentStatus.UNPAID)
    return Ok(replace(fine, payment_status=FinePaymentStatus.UNPAID, payment_method=None))


# ═══════════════════════════════════════════════════════════════════════════════
# Deposit
# ═══════════════════════════════════════════════════════════════════════════════


def is_deposit_frozen(fine: Fine | None) -> bool:
    """The deposit is held back while a non-zero fine is not yet paid."""
    if fine is None:
        return False
    return fine.amount > ZERO and fine.payment_status != FinePaymentStatus.PAID


def refund_due(deposit: MoneyLike, fine: Fine | None) -> Money:
    """
    Deposit owed back to the customer.

    A paid fine is deducted from the deposit. Anything else leaves the full
    deposit owed (and frozen, see is_deposit_frozen).
    """
    amount = money(deposit)
    if fine is not None and fine.payment_status == FinePaymentStatus.PAID:
        return round2(clamp_zero(amount - fine.amount))
    return round2(amount)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "days_overdue",
    "assess",
    "record_payment",
    "confirm_cash_payment",
    "reissue",
    "is_deposit_frozen",
    "refund_due",
)
