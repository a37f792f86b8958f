import re
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest

from bookflow import Error, Ok, OrderItem, PaymentMethod, Policy, RequestKind
from bookflow import fine as F
from bookflow import order as O
from bookflow.fine import FinePaymentStatus
from bookflow.lifecycle import BorrowingStatus, LifecycleErrorKind, PurchaseStatus, ReturnStatus

from tests.conftest import ADMIN, CUSTOMER, NOW


def _ok(result):
    match result:
        case Ok(value):
            return value
        case Error(e):
            pytest.fail(e.message)


def _error(result):
    match result:
        case Error(e):
            return e
        case Ok(_):
            pytest.fail("expected an error")


# ─── creation ──────────────────────────────────────────────────────────────────


def test_draft_starts_pending_and_priced(items, policy):
    cart = O.draft(RequestKind.PURCHASE, 42, items, policy=policy, delivery_cost="5.00", at=NOW)

    assert cart.status is PurchaseStatus.PENDING
    assert cart.pricing.final_total == Decimal("26.58")
    assert cart.created_at == cart.updated_at == NOW
    assert cart.note_permissions == O.NotePermissions()


def test_draft_needs_items(policy):
    with pytest.raises(ValueError):
        O.draft(RequestKind.PURCHASE, 42, [], policy=policy)


def test_borrow_period_is_bounded(items, policy):
    with pytest.raises(ValueError):
        O.draft(RequestKind.BORROWING, 42, items, policy=policy, borrow_period_days=31)
    with pytest.raises(ValueError):
        O.draft(RequestKind.BORROWING, 42, items, policy=policy.with_max_borrow_period_days(10), borrow_period_days=14)

    borrowing = O.draft(
        RequestKind.BORROWING, 42, items, policy=policy, borrow_period_days=30, deposit_amount="20",
    )
    assert borrowing.status is BorrowingStatus.PENDING
    assert borrowing.deposit_amount == Decimal("20")


def test_requote_after_policy_change(make_order):
    order = make_order()
    requoted = O.requote(order, policy=Policy().with_tax_rate(0), at=NOW)
    assert requoted.pricing.tax_amount == Decimal("0.00")
    assert requoted.pricing.final_total == Decimal("24.98")


# ─── order number ──────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("kind", "prefix"),
    [(RequestKind.PURCHASE, "ORD"), (RequestKind.BORROWING, "BR"), (RequestKind.RETURN_COLLECTION, "RET")],
)
def test_generated_numbers(kind, prefix):
    number = O.generate_order_number(kind, at=NOW)
    assert re.fullmatch(rf"{prefix}\d{{8}}[0-9A-F]{{6}}", number)
    assert number[len(prefix):len(prefix) + 8] == str(int(NOW.timestamp()))[-8:]


def test_number_is_assigned_once(make_order):
    numbered = _ok(O.assign_order_number(make_order(), " ORD1 "))
    assert numbered.order_number == "ORD1"

    err = _error(O.assign_order_number(numbered, "ORD2"))
    assert err.kind is LifecycleErrorKind.UNAUTHORIZED

    with pytest.raises(ValueError):
        O.assign_order_number(make_order(), "  ")


# ─── notes ─────────────────────────────────────────────────────────────────────


def test_notes_are_appended(make_order):
    order = O.add_note(make_order(), note_id=1, author_id=3, author_role=ADMIN, body="call first", at=NOW)
    order = O.add_note(order, note_id=2, author_id=42, author_role=CUSTOMER, body="ring twice", at=NOW)

    assert [n.note_id for n in order.notes] == [1, 2]
    assert order.note(2).body == "ring twice"
    with pytest.raises(ValueError):
        O.add_note(order, note_id=3, author_id=3, author_role=ADMIN, body=" ")


def test_edit_and_delete_need_permission(make_order):
    order = O.add_note(make_order(), note_id=1, author_id=3, author_role=ADMIN, body="call first")

    assert _error(O.edit_note(order, 1, "changed")).kind is LifecycleErrorKind.UNAUTHORIZED
    assert _error(O.delete_note(order, 1)).kind is LifecycleErrorKind.UNAUTHORIZED

    allowed = O.grant_note_permissions(order, O.NotePermissions(can_edit_notes=True, can_delete_notes=True))
    edited = _ok(O.edit_note(allowed, 1, "leave at door", at=NOW))
    assert edited.note(1).body == "leave at door"
    assert edited.note(1).edited_at == NOW

    assert _ok(O.delete_note(edited, 1)).notes == ()
    with pytest.raises(KeyError):
        O.delete_note(edited, 99)


# ─── borrowing ─────────────────────────────────────────────────────────────────


@pytest.fixture
def borrowed(make_order):
    return make_order(
        kind=RequestKind.BORROWING,
        status=BorrowingStatus.DELIVERED,
        borrow_period_days=14,
        due_date=date(2024, 1, 10),
        deposit_amount=Decimal("20.00"),
    )


def test_observe_return_estimates_fine(borrowed, policy):
    returned = O.observe_return(borrowed, date(2024, 1, 15), policy=policy, at=NOW)

    assert returned.fine.days_overdue == 5
    assert returned.fine.amount == Decimal("5.00")
    assert returned.pricing.fine_amount == Decimal("5.00")
    assert returned.actual_return_date == date(2024, 1, 15)

    on_time = O.observe_return(returned, date(2024, 1, 9), policy=policy)
    assert on_time.fine is None
    assert on_time.pricing.fine_amount == Decimal("0.00")


def test_observe_return_keeps_fine_in_payment(borrowed, policy):
    late = O.observe_return(borrowed, date(2024, 1, 15), policy=policy)
    paying = replace(late, fine=_ok(F.record_payment(late.fine, PaymentMethod.CASH)))

    again = O.observe_return(paying, date(2024, 1, 20), policy=policy)

    assert again.fine.payment_status is FinePaymentStatus.PENDING_CASH_PAYMENT
    assert again.fine.amount == Decimal("5.00")


def test_observe_return_without_fine_rate(borrowed):
    with pytest.raises(ValueError):
        O.observe_return(borrowed, date(2024, 1, 15), policy=Policy())


def test_extension_flow(borrowed, policy):
    on = NOW  # 2024-01-05, before the due date
    pending = _ok(O.request_extension(borrowed, 5, policy=policy, at=on))
    assert pending.pending_extension_days == 5

    assert _error(O.request_extension(pending, 2, policy=policy, at=on)).params["reason"] == "extension_pending"
    assert _error(O.resolve_extension(pending, True, CUSTOMER)).kind is LifecycleErrorKind.UNAUTHORIZED

    approved = _ok(O.resolve_extension(pending, True, ADMIN))
    assert approved.due_date == date(2024, 1, 15)
    assert approved.pending_extension_days is None

    rejected = _ok(O.resolve_extension(pending, False, ADMIN))
    assert rejected.due_date == date(2024, 1, 10)

    assert _error(O.resolve_extension(approved, True, ADMIN)).params["reason"] == "no_pending_extension"


def test_extension_refused_when_overdue_or_not_borrowed(borrowed, make_order, policy):
    late = NOW + timedelta(days=10)
    assert _error(O.request_extension(borrowed, 3, policy=policy, at=late)).params["reason"] == "overdue"

    approved = make_order(kind=RequestKind.BORROWING, status=BorrowingStatus.APPROVED)
    assert _error(O.request_extension(approved, 3, policy=policy, at=NOW)).params["reason"] == "not_borrowed"

    with pytest.raises(ValueError):
        O.request_extension(borrowed, 8, policy=policy, at=NOW)
    with pytest.raises(ValueError):
        O.request_extension(make_order(), 3, policy=policy)


def test_overdue_check(borrowed):
    assert not borrowed.is_overdue(date(2024, 1, 10))
    assert borrowed.is_overdue(date(2024, 1, 11))


# ─── cancel ────────────────────────────────────────────────────────────────────


def test_cancel_records_reason(make_order):
    cancelled = _ok(O.cancel(make_order(), CUSTOMER, "  changed my mind "))

    assert cancelled.status is PurchaseStatus.CANCELLED
    assert cancelled.cancellation_reason == "changed my mind"
    assert cancelled.is_terminal


def test_cancel_follows_lifecycle_rules(make_order):
    shipped = make_order(status=PurchaseStatus.IN_DELIVERY)
    assert _error(O.cancel(shipped, ADMIN)).kind is LifecycleErrorKind.INVALID_TRANSITION

    collection = make_order(kind=RequestKind.RETURN_COLLECTION, status=ReturnStatus.PENDING)
    err = _error(O.cancel(collection, ADMIN))
    assert err.params["reason"] == "not_cancellable"


def test_line_items_are_validated():
    with pytest.raises(ValueError):
        OrderItem(book_id=1, quantity=0, unit_price="1.00")
    with pytest.raises(ValueError):
        OrderItem(book_id=1, quantity=1, unit_price="-1.00")
