"""
Order operations — create, price, annotate and adjust requests.

Every function takes an aggregate and returns a new one (or a Result
carrying one). Status changes go through bookflow.lifecycle.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime, timedelta

from bookflow._policy import Policy
from bookflow._types import (
    ActorRole,
    Error,
    Ok,
    OrderItem,
    PaymentMethod,
    RequestKind,
    Result,
    as_date,
    stamp,
)
from bookflow.fine import FinePaymentStatus, assess, days_overdue
from bookflow.lifecycle import (
    BorrowingStatus,
    LifecycleError,
    LifecycleErrorKind,
    PurchaseStatus,
    initial_status,
    transition,
)
from bookflow.money import ZERO, MoneyLike, money
from bookflow.order._types import NotePermissions, OrderAggregate, OrderNote
from bookflow.pricing import compute, reprice

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Creation
# ═══════════════════════════════════════════════════════════════════════════════


def draft(
    kind: RequestKind,
    customer_id: int,
    items: Iterable[OrderItem],
    *,
    policy: Policy,
    delivery_cost: MoneyLike = ZERO,
    delivery_address: str | None = None,
    borrow_period_days: int = 0,
    deposit_amount: MoneyLike | None = None,
    payment_method: PaymentMethod | None = None,
    order_id: int | None = None,
    at: datetime | None = None,
) -> OrderAggregate:
    """
    Start a new request in its kind's initial status, priced.

    Raises:
        ValueError: no items, or a borrow period above the policy maximum.
    """
    lines = tuple(items)
    if not lines:
        raise ValueError("a request needs at least one item")
    if borrow_period_days > policy.max_borrow_period_days:
        raise ValueError(
            f"borrow_period_days {borrow_period_days} exceeds "
            f"{policy.max_borrow_period_days}"
        )

    now = stamp(at)
    return OrderAggregate(
        kind=kind,
        status=initial_status(kind),
        customer_id=customer_id,
        items=lines,
        pricing=compute(lines, delivery_cost, policy=policy),
        created_at=now,
        updated_at=now,
        id=order_id,
        delivery_address=delivery_address,
        borrow_period_days=borrow_period_days,
        deposit_amount=money(deposit_amount) if deposit_amount is not None else None,
        payment_method=payment_method,
    )


def requote(
    order: OrderAggregate,
    *,
    policy: Policy,
    at: datetime | None = None,
) -> OrderAggregate:
    """Recompute pricing from items, delivery cost, discount and fine."""
    return replace(
        order,
        pricing=reprice(order, policy=policy, fine=order.fine),
        updated_at=stamp(at),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Order Number
# ═══════════════════════════════════════════════════════════════════════════════

_NUMBER_PREFIX = {
    RequestKind.PURCHASE: "ORD",
    RequestKind.BORROWING: "BR",
    RequestKind.RETURN_COLLECTION: "RET",
}


def generate_order_number(kind: RequestKind, *, at: datetime | None = None) -> str:
    """
    Human-facing request number.

    Format: prefix + last 8 digits of the unix time + 6 upper-case hex chars.

    Example:
        generate_order_number(RequestKind.PURCHASE)  # "ORD12345678A1B2C3"
    """
    timestamp = str(int(stamp(at).timestamp()))[-8:]
    random_part = uuid.uuid4().hex[:6].upper()
    return f"{_NUMBER_PREFIX[kind]}{timestamp}{random_part}"


def assign_order_number(
    order: OrderAggregate,
    number: str,
    *,
    at: datetime | None = None,
) -> Result[OrderAggregate, LifecycleError]:
    """Set the order number once. A second assignment is refused."""
    if not number.strip():
        raise ValueError("order number must not be blank")
    if order.order_number is not None:
        return Error(LifecycleError(
            kind=LifecycleErrorKind.UNAUTHORIZED,
            message=f"Request already numbered {order.order_number}",
            params={"order_number": order.order_number},
        ))
    return Ok(replace(order, order_number=number.strip(), updated_at=stamp(at)))


# ═══════════════════════════════════════════════════════════════════════════════
# Notes
# ═══════════════════════════════════════════════════════════════════════════════


def _unauthorized(action: str, note_id: int) -> Error[LifecycleError]:
    return Error(LifecycleError(
        kind=LifecycleErrorKind.UNAUTHORIZED,
        message=f"Not allowed to {action} note {note_id}",
        params={"action": action, "note_id": str(note_id)},
    ))


def _require_note(order: OrderAggregate, note_id: int) -> OrderNote:
    found = order.note(note_id)
    if found is None:
        raise KeyError(f"request {order.id} has no note {note_id}")
    return found


def add_note(
    order: OrderAggregate,
    *,
    note_id: int,
    author_id: int,
    author_role: ActorRole,
    body: str,
    at: datetime | None = None,
) -> OrderAggregate:
    if not body.strip():
        raise ValueError("note body must not be blank")
    now = stamp(at)
    note = OrderNote(
        note_id=note_id,
        author_id=author_id,
        author_role=author_role,
        body=body.strip(),
        created_at=now,
    )
    return replace(order, notes=order.notes + (note,), updated_at=now)


def edit_note(
    order: OrderAggregate,
    note_id: int,
    body: str,
    *,
    at: datetime | None = None,
) -> Result[OrderAggregate, LifecycleError]:
    """
    Change a note's body.

    Needs can_edit_notes on the request's NotePermissions.

    Raises:
        KeyError: note_id is not on this request.
    """
    if not order.note_permissions.can_edit_notes:
        return _unauthorized("edit", note_id)
    if not body.strip():
        raise ValueError("note body must not be blank")

    target = _require_note(order, note_id)
    now = stamp(at)
    edited = replace(target, body=body.strip(), edited_at=now)
    notes = tuple(edited if n.note_id == note_id else n for n in order.notes)
    return Ok(replace(order, notes=notes, updated_at=now))


def delete_note(
    order: OrderAggregate,
    note_id: int,
    *,
    at: datetime | None = None,
) -> Result[OrderAggregate, LifecycleError]:
    """Remove a note. Needs can_delete_notes."""
    if not order.note_permissions.can_delete_notes:
        return _unauthorized("delete", note_id)
    _require_note(order, note_id)
    notes = tuple(n for n in order.notes if n.note_id != note_id)
    return Ok(replace(order, notes=notes, updated_at=stamp(at)))


def grant_note_permissions(
    order: OrderAggregate,
    permissions: NotePermissions,
) -> OrderAggregate:
    """Attach the permissions the backend reported for the current user."""
    return replace(order, note_permissions=permissions)


# ═══════════════════════════════════════════════════════════════════════════════
# Borrowing
# ═══════════════════════════════════════════════════════════════════════════════


def _require_borrowing(order: OrderAggregate) -> None:
    if order.kind is not RequestKind.BORROWING:
        raise ValueError(f"{order.kind.value} requests have no borrowing terms")


def _refused(order: OrderAggregate, reason: str, message: str) -> Error[LifecycleError]:
    return Error(LifecycleError(
        kind=LifecycleErrorKind.INVALID_TRANSITION,
        message=message,
        params={"status": order.status.value, "reason": reason},
    ))


def observe_return(
    order: OrderAggregate,
    returned_on: date | datetime,
    *,
    policy: Policy,
    at: datetime | None = None,
) -> OrderAggregate:
    """
    Record when the book came back and estimate the fine.

    The fine is assessed against due_date and the pricing requoted. A fine
    whose payment already started is kept as it is.
    """
    _require_borrowing(order)

    fine = order.fine
    payment_started = fine is not None and fine.payment_status != FinePaymentStatus.UNPAID
    if not payment_started and order.due_date is not None:
        if days_overdue(order.due_date, returned_on) > 0:
            fine = assess(order.due_date, returned_on, daily_rate=policy.require_fine_daily_rate())
        else:
            fine = None

    updated = replace(order, actual_return_date=as_date(returned_on), fine=fine)
    return replace(
        updated,
        pricing=reprice(updated, policy=policy, fine=fine),
        updated_at=stamp(at),
    )


def request_extension(
    order: OrderAggregate,
    days: int,
    *,
    policy: Policy,
    at: datetime | None = None,
) -> Result[OrderAggregate, LifecycleError]:
    """
    Customer asks to keep the book longer.

    Allowed while the book is with the customer, not yet overdue, and no
    other extension is waiting for an answer.

    Raises:
        ValueError: days outside [1, policy.max_extension_days].
    """
    _require_borrowing(order)
    if not 1 <= days <= policy.max_extension_days:
        raise ValueError(f"extension must be 1-{policy.max_extension_days} days, got {days}")

    now = stamp(at)
    if order.status is not BorrowingStatus.DELIVERED:
        return _refused(order, "not_borrowed", "Only a borrowed book can be extended")
    if order.is_overdue(now):
        return _refused(order, "overdue", "An overdue borrowing cannot be extended")
    if order.pending_extension_days is not None:
        return _refused(order, "extension_pending", "An extension is already waiting for approval")

    return Ok(replace(order, pending_extension_days=days, updated_at=now))


def resolve_extension(
    order: OrderAggregate,
    approve: bool,
    role: ActorRole,
    *,
    at: datetime | None = None,
) -> Result[OrderAggregate, LifecycleError]:
    """Admin approves (due date moves out) or rejects a pending extension."""
    _require_borrowing(order)
    if role is not ActorRole.ADMIN:
        return Error(LifecycleError(
            kind=LifecycleErrorKind.UNAUTHORIZED,
            message="Only a library admin can resolve extensions",
            params={"role": role.value},
        ))

    days = order.pending_extension_days
    if days is None:
        return _refused(order, "no_pending_extension", "No extension is waiting for approval")

    due = order.due_date
    if approve and due is not None:
        due = due + timedelta(days=days)
        logger.debug("Extended borrowing %s by %s day(s) to %s", order.id, days, due)

    return Ok(replace(order, due_date=due, pending_extension_days=None, updated_at=stamp(at)))


# ═══════════════════════════════════════════════════════════════════════════════
# Cancel
# ═══════════════════════════════════════════════════════════════════════════════

_CANCELLED = {
    RequestKind.PURCHASE: PurchaseStatus.CANCELLED,
    RequestKind.BORROWING: BorrowingStatus.CANCELLED,
}


def cancel(
    order: OrderAggregate,
    role: ActorRole,
    reason: str | None = None,
    *,
    at: datetime | None = None,
) -> Result[OrderAggregate, LifecycleError]:
    """
    Cancel before dispatch, recording the reason.

    Return collections cannot be cancelled.
    """
    target = _CANCELLED.get(order.kind)
    if target is None:
        return _refused(order, "not_cancellable", f"A {order.kind.value} request cannot be cancelled")

    moved = transition(order, target, role, at=at)
    if isinstance(moved, Error):
        return moved
    text = reason.strip() if reason is not None else None
    return Ok(replace(moved.value, cancellation_reason=text or None))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Creation
    "draft",
    "requote",
    # Order number
    "generate_order_number",
    "assign_order_number",
    # Notes
    "add_note",
    "edit_note",
    "delete_note",
    "grant_note_permissions",
    # Borrowing
    "observe_return",
    "request_extension",
    "resolve_extension",
    # Cancel
    "cancel",
)
