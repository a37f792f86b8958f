from datetime import date, datetime
from decimal import Decimal

import pytest

from bookflow import Error, Ok, PaymentMethod
from bookflow import fine as F
from bookflow.fine import FineErrorKind, FinePaymentStatus

DUE = date(2024, 1, 10)


def _ok(result):
    match result:
        case Ok(value):
            return value
        case Error(e):
            pytest.fail(e.message)


def _error_kind(result):
    match result:
        case Error(e):
            return e.kind
        case Ok(_):
            return None


def test_five_days_late():
    fine = F.assess(DUE, date(2024, 1, 15), daily_rate="1.00")

    assert fine is not None
    assert fine.days_overdue == 5
    assert fine.amount == Decimal("5.00")
    assert fine.payment_status is FinePaymentStatus.UNPAID


def test_on_time_or_early_has_no_fine():
    assert F.assess(DUE, DUE, daily_rate="1.00") is None
    assert F.assess(DUE, date(2024, 1, 2), daily_rate="1.00") is None


def test_time_of_day_is_ignored():
    late_on_due_day = datetime(2024, 1, 10, 23, 59)
    assert F.assess(DUE, late_on_due_day, daily_rate="1.00") is None
    assert F.days_overdue(datetime(2024, 1, 10, 23, 0), datetime(2024, 1, 11, 0, 30)) == 1


def test_fine_grows_with_lateness():
    amounts = [
        F.assess(DUE, date(2024, 1, day), daily_rate="0.35")
        for day in range(10, 31)
    ]
    values = [f.amount if f is not None else Decimal(0) for f in amounts]
    assert values == sorted(values)


def test_negative_rate_is_refused():
    with pytest.raises(ValueError):
        F.assess(DUE, date(2024, 1, 15), daily_rate="-1")


# ─── payment ───────────────────────────────────────────────────────────────────


@pytest.fixture
def fine():
    return F.assess(DUE, date(2024, 1, 13), daily_rate="1.00")


def test_cash_waits_for_confirmation(fine):
    pending = _ok(F.record_payment(fine, PaymentMethod.CASH))
    assert pending.payment_status is FinePaymentStatus.PENDING_CASH_PAYMENT
    assert pending.payment_method is PaymentMethod.CASH

    paid = _ok(F.confirm_cash_payment(pending, received=True))
    assert paid.is_settled

    failed = _ok(F.confirm_cash_payment(pending, received=False))
    assert failed.payment_status is FinePaymentStatus.FAILED


@pytest.mark.parametrize("method", [PaymentMethod.CARD, PaymentMethod.WALLET])
def test_card_and_wallet_settle_at_once(fine, method):
    assert _ok(F.record_payment(fine, method)).payment_status is FinePaymentStatus.PAID
    assert _ok(F.record_payment(fine, method, approved=False)).payment_status is FinePaymentStatus.FAILED


def test_paid_and_failed_are_final(fine):
    paid = _ok(F.record_payment(fine, PaymentMethod.CARD))
    failed = _ok(F.record_payment(fine, PaymentMethod.CARD, approved=False))

    for settled in (paid, failed):
        assert _error_kind(F.record_payment(settled, PaymentMethod.CASH)) is FineErrorKind.INVALID_PAYMENT_TRANSITION
        assert _error_kind(F.confirm_cash_payment(settled, received=True)) is FineErrorKind.INVALID_PAYMENT_TRANSITION


def test_confirming_unpaid_fine_is_refused(fine):
    match F.confirm_cash_payment(fine, received=True):
        case Error(e):
            assert e.key == "fine.invalid_payment_transition"
            assert e.params == {"from": "unpaid", "to": "paid"}
        case Ok(_):
            pytest.fail("unpaid fine was confirmed")


def test_failed_fine_can_be_reissued(fine):
    failed = _ok(F.record_payment(fine, PaymentMethod.CARD, approved=False))

    again = _ok(F.reissue(failed))

    assert again.payment_status is FinePaymentStatus.UNPAID
    assert again.payment_method is None
    assert again.amount == fine.amount
    assert _error_kind(F.reissue(fine)) is FineErrorKind.INVALID_PAYMENT_TRANSITION


# ─── deposit ───────────────────────────────────────────────────────────────────


def test_deposit_frozen_until_fine_paid(fine):
    assert F.is_deposit_frozen(fine)
    assert not F.is_deposit_frozen(None)
    assert not F.is_deposit_frozen(_ok(F.record_payment(fine, PaymentMethod.CARD)))


def test_refund_deducts_paid_fine(fine):
    paid = _ok(F.record_payment(fine, PaymentMethod.CARD))

    assert F.refund_due("20.00", paid) == Decimal("17.00")
    assert F.refund_due("2.00", paid) == Decimal("0.00")
    assert F.refund_due("20.00", fine) == Decimal("20.00")
    assert F.refund_due("20.00", None) == Decimal("20.00")
