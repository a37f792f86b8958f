"""
Order types — the request aggregate and its notes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from bookflow._policy import MAX_BORROW_PERIOD_DAYS
from bookflow._types import ActorRole, OrderItem, PaymentMethod, RequestKind, as_date
from bookflow.delivery import DeliveryAssignment
from bookflow.discount import DiscountApplication, normalize_code
from bookflow.fine import Fine
from bookflow.lifecycle import Status, belongs_to
from bookflow.lifecycle import is_terminal as status_is_terminal
from bookflow.money import Money, money
from bookflow.pricing import Pricing

# ═══════════════════════════════════════════════════════════════════════════════
# Notes
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderNote:
    note_id: int
    author_id: int
    author_role: ActorRole
    body: str
    created_at: datetime
    edited_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class NotePermissions:
    """
    What the current user may do with existing notes.

    Granted by the backend per request. Both default to deny.
    """

    can_edit_notes: bool = False
    can_delete_notes: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# Order Aggregate
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderAggregate:
    """
    A purchase, borrowing or return-collection request.

    Immutable snapshot. Every operation returns a new aggregate; the store
    replaces its copy wholesale.

    Invariants checked at construction:
        status belongs to kind's own status enumeration
        borrow_period_days in [0, 30]
        pricing.final_total matches its components (checked by Pricing)

    Borrowing terms (borrow_period_days, due_date, actual_return_date, fine,
    deposit_amount, pending_extension_days) stay at their defaults for other
    kinds.
    """

    kind: RequestKind
    status: Status
    customer_id: int
    items: tuple[OrderItem, ...]
    pricing: Pricing
    created_at: datetime
    updated_at: datetime
    id: int | None = None
    order_number: str | None = None
    delivery_address: str | None = None
    discount: DiscountApplication | None = None
    discount_code: str | None = None
    delivery_assignment: DeliveryAssignment | None = None
    superseded_assignments: tuple[DeliveryAssignment, ...] = ()
    notes: tuple[OrderNote, ...] = ()
    note_permissions: NotePermissions = field(default_factory=NotePermissions)
    borrow_period_days: int = 0
    due_date: date | None = None
    actual_return_date: date | None = None
    fine: Fine | None = None
    deposit_amount: Money | None = None
    pending_extension_days: int | None = None
    payment_method: PaymentMethod | None = None
    cancellation_reason: str | None = None

    def __post_init__(self) -> None:
        if not belongs_to(self.kind, self.status):
            raise ValueError(
                f"{self.status!r} is not a {self.kind.value} status"
            )
        if not 0 <= self.borrow_period_days <= MAX_BORROW_PERIOD_DAYS:
            raise ValueError(
                f"borrow_period_days must be in [0, {MAX_BORROW_PERIOD_DAYS}], "
                f"got {self.borrow_period_days}"
            )
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "superseded_assignments", tuple(self.superseded_assignments))
        object.__setattr__(self, "notes", tuple(self.notes))
        if self.discount_code is not None:
            code = normalize_code(self.discount_code)
            object.__setattr__(self, "discount_code", code or None)
        if self.deposit_amount is not None:
            object.__setattr__(self, "deposit_amount", money(self.deposit_amount))

    @property
    def is_terminal(self) -> bool:
        return status_is_terminal(self.kind, self.status)

    @property
    def is_borrowing(self) -> bool:
        return self.kind is RequestKind.BORROWING

    def is_overdue(self, on: date | datetime) -> bool:
        """Book still out and past its due date on the given day."""
        if not self.is_borrowing or self.due_date is None:
            return False
        if self.actual_return_date is not None:
            return False
        return as_date(on) > self.due_date

    def note(self, note_id: int) -> OrderNote | None:
        return next((n for n in self.notes if n.note_id == note_id), None)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "MAX_BORROW_PERIOD_DAYS",
    "OrderNote",
    "NotePermissions",
    "OrderAggregate",
)
