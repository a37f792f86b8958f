"""
Order payloads — the JSON order resource.

Field names follow the backend. Older endpoints use different names for a
few fields (``book``, ``delivery_manager_id``, ``expected_return_date``,
``coupon_code``); those are accepted on input.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

from bookflow._types import ActorRole, OrderItem, PaymentMethod, RequestKind
from bookflow.delivery import AssignmentStatus, DeliveryAssignment
from bookflow.fine import Fine, FinePaymentStatus
from bookflow.lifecycle import Status, status_for
from bookflow.money import ZERO, round2, total
from bookflow.order import NotePermissions, OrderAggregate, OrderNote
from bookflow.pricing import Pricing

logger = logging.getLogger(__name__)


def calendar_day(value: Any) -> Any:
    """Accept an ISO datetime where a date is expected; keep the date part."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.fromisoformat(value).date()
    return value


CalendarDay = Annotated[date, BeforeValidator(calendar_day)]


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ═══════════════════════════════════════════════════════════════════════════════
# Items
# ═══════════════════════════════════════════════════════════════════════════════


class OrderItemPayload(_Payload):
    book_id: int = Field(validation_alias=AliasChoices("book_id", "book"))
    quantity: int
    unit_price: Decimal
    total_price: Decimal | None = None

    def to_domain(self) -> OrderItem:
        return OrderItem(book_id=self.book_id, quantity=self.quantity, unit_price=self.unit_price)

    @classmethod
    def from_domain(cls, dom: OrderItem) -> OrderItemPayload:
        return cls(
            book_id=dom.book_id,
            quantity=dom.quantity,
            unit_price=round2(dom.unit_price),
            total_price=round2(dom.line_total),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery Assignment
# ═══════════════════════════════════════════════════════════════════════════════


class DeliveryAssignmentPayload(_Payload):
    agent_id: int = Field(
        validation_alias=AliasChoices("agent_id", "delivery_manager_id", "delivery_agent_id"),
    )
    status: AssignmentStatus
    assigned_at: datetime
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    rejection_reason: str | None = None

    def to_domain(self) -> DeliveryAssignment:
        return DeliveryAssignment(
            agent_id=self.agent_id,
            status=self.status,
            assigned_at=self.assigned_at,
            accepted_at=self.accepted_at,
            rejected_at=self.rejected_at,
            started_at=self.started_at,
            completed_at=self.completed_at,
            rejection_reason=self.rejection_reason,
        )

    @classmethod
    def from_domain(cls, dom: DeliveryAssignment) -> DeliveryAssignmentPayload:
        return cls(
            agent_id=dom.agent_id,
            status=dom.status,
            assigned_at=dom.assigned_at,
            accepted_at=dom.accepted_at,
            rejected_at=dom.rejected_at,
            started_at=dom.started_at,
            completed_at=dom.completed_at,
            rejection_reason=dom.rejection_reason,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Fine
# ═══════════════════════════════════════════════════════════════════════════════


class FinePayload(_Payload):
    due_date: CalendarDay
    returned_on: CalendarDay = Field(validation_alias=AliasChoices("returned_on", "return_date"))
    days_overdue: int
    daily_rate: Decimal
    amount: Decimal = Field(validation_alias=AliasChoices("amount", "fine_amount"))
    payment_status: FinePaymentStatus = Field(
        default=FinePaymentStatus.UNPAID,
        validation_alias=AliasChoices("payment_status", "fine_status"),
    )
    payment_method: PaymentMethod | None = None

    def to_domain(self) -> Fine:
        return Fine(
            due_date=self.due_date,
            returned_on=self.returned_on,
            days_overdue=self.days_overdue,
            daily_rate=self.daily_rate,
            amount=round2(self.amount),
            payment_status=self.payment_status,
            payment_method=self.payment_method,
        )

    @classmethod
    def from_domain(cls, dom: Fine) -> FinePayload:
        return cls(
            due_date=dom.due_date,
            returned_on=dom.returned_on,
            days_overdue=dom.days_overdue,
            daily_rate=dom.daily_rate,
            amount=dom.amount,
            payment_status=dom.payment_status,
            payment_method=dom.payment_method,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Notes
# ═══════════════════════════════════════════════════════════════════════════════


class OrderNotePayload(_Payload):
    note_id: int = Field(validation_alias=AliasChoices("note_id", "id"))
    author_id: int = Field(validation_alias=AliasChoices("author_id", "author"))
    author_role: ActorRole = Field(validation_alias=AliasChoices("author_role", "author_type"))
    body: str = Field(validation_alias=AliasChoices("body", "content"))
    created_at: datetime
    edited_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("edited_at", "updated_at"),
    )

    def to_domain(self) -> OrderNote:
        return OrderNote(
            note_id=self.note_id,
            author_id=self.author_id,
            author_role=self.author_role,
            body=self.body,
            created_at=self.created_at,
            edited_at=self.edited_at,
        )

    @classmethod
    def from_domain(cls, dom: OrderNote) -> OrderNotePayload:
        return cls(
            note_id=dom.note_id,
            author_id=dom.author_id,
            author_role=dom.author_role,
            body=dom.body,
            created_at=dom.created_at,
            edited_at=dom.edited_at,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


class OrderPayload(_Payload):
    """
    The order resource.

    Pricing components are taken as the backend sent them. ``total_amount``
    is compared with the components and a mismatch is logged; the derived
    total is what the domain keeps.
    """

    id: int | None = None
    order_number: str | None = None
    order_type: RequestKind
    status: str
    customer_id: int = Field(validation_alias=AliasChoices("customer_id", "customer"))
    delivery_address: str | None = None
    items: list[OrderItemPayload]
    total_amount: Decimal
    delivery_cost: Decimal = ZERO
    tax_amount: Decimal = ZERO
    discount_amount: Decimal = ZERO
    fine_amount: Decimal = ZERO
    discount_code: str | None = Field(
        default=None,
        validation_alias=AliasChoices("discount_code", "coupon_code"),
    )
    delivery_assignment: DeliveryAssignmentPayload | None = None
    cancellation_reason: str | None = None
    payment_method: PaymentMethod | None = None
    borrow_period_days: int = 0
    due_date: CalendarDay | None = Field(
        default=None,
        validation_alias=AliasChoices("due_date", "expected_return_date"),
    )
    actual_return_date: CalendarDay | None = None
    deposit_amount: Decimal | None = None
    fine: FinePayload | None = None
    pending_extension_days: int | None = None
    notes: list[OrderNotePayload] = Field(default_factory=list)
    can_edit_notes: bool = False
    can_delete_notes: bool = False
    created_at: datetime
    updated_at: datetime

    def _pricing(self) -> Pricing:
        subtotal = total(
            item.total_price if item.total_price is not None else item.unit_price * item.quantity
            for item in self.items
        )
        pricing = Pricing.of(
            subtotal=subtotal,
            tax_amount=self.tax_amount,
            delivery_cost=self.delivery_cost,
            discount_amount=self.discount_amount,
            fine_amount=self.fine_amount,
        )
        if pricing.final_total != round2(self.total_amount):
            logger.warning(
                "Order %s total_amount %s does not match its components (%s)",
                self.order_number or self.id, self.total_amount, pricing.final_total,
            )
        return pricing

    def to_domain(self) -> OrderAggregate:
        """
        Raises:
            ValueError: status is not a status of order_type.
        """
        status: Status = status_for(self.order_type, self.status)
        return OrderAggregate(
            kind=self.order_type,
            status=status,
            customer_id=self.customer_id,
            items=tuple(item.to_domain() for item in self.items),
            pricing=self._pricing(),
            created_at=self.created_at,
            updated_at=self.updated_at,
            id=self.id,
            order_number=self.order_number,
            delivery_address=self.delivery_address,
            discount=None,
            discount_code=self.discount_code,
            delivery_assignment=(
                self.delivery_assignment.to_domain() if self.delivery_assignment else None
            ),
            notes=tuple(note.to_domain() for note in self.notes),
            note_permissions=NotePermissions(
                can_edit_notes=self.can_edit_notes,
                can_delete_notes=self.can_delete_notes,
            ),
            borrow_period_days=self.borrow_period_days,
            due_date=self.due_date,
            actual_return_date=self.actual_return_date,
            fine=self.fine.to_domain() if self.fine else None,
            deposit_amount=self.deposit_amount,
            pending_extension_days=self.pending_extension_days,
            payment_method=self.payment_method,
            cancellation_reason=self.cancellation_reason,
        )

    @classmethod
    def from_domain(cls, dom: OrderAggregate) -> OrderPayload:
        p = dom.pricing
        return cls(
            id=dom.id,
            order_number=dom.order_number,
            order_type=dom.kind,
            status=dom.status.value,
            customer_id=dom.customer_id,
            delivery_address=dom.delivery_address,
            items=[OrderItemPayload.from_domain(item) for item in dom.items],
            total_amount=p.final_total,
            delivery_cost=p.delivery_cost,
            tax_amount=p.tax_amount,
            discount_amount=p.discount_amount,
            fine_amount=p.fine_amount,
            discount_code=dom.discount_code,
            delivery_assignment=(
                DeliveryAssignmentPayload.from_domain(dom.delivery_assignment)
                if dom.delivery_assignment
                else None
            ),
            cancellation_reason=dom.cancellation_reason,
            payment_method=dom.payment_method,
            borrow_period_days=dom.borrow_period_days,
            due_date=dom.due_date,
            actual_return_date=dom.actual_return_date,
            deposit_amount=dom.deposit_amount,
            fine=FinePayload.from_domain(dom.fine) if dom.fine else None,
            pending_extension_days=dom.pending_extension_days,
            notes=[OrderNotePayload.from_domain(note) for note in dom.notes],
            can_edit_notes=dom.note_permissions.can_edit_notes,
            can_delete_notes=dom.note_permissions.can_delete_notes,
            created_at=dom.created_at,
            updated_at=dom.updated_at,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Status Update
# ═══════════════════════════════════════════════════════════════════════════════


class StatusUpdatePayload(_Payload):
    """
    Body of a status change request.

    updated_at is the snapshot the change was validated against; the backend
    answers 409 when its copy has moved on.
    """

    status: str
    updated_at: datetime
    cancellation_reason: str | None = None

    @classmethod
    def of(
        cls,
        order: OrderAggregate,
        to: Status,
        *,
        reason: str | None = None,
    ) -> StatusUpdatePayload:
        return cls(status=to.value, updated_at=order.updated_at, cancellation_reason=reason)


__all__ = (
    "calendar_day",
    "CalendarDay",
    "OrderItemPayload",
    "DeliveryAssignmentPayload",
    "FinePayload",
    "OrderNotePayload",
    "OrderPayload",
    "StatusUpdatePayload",
)
