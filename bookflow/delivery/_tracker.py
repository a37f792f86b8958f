"""
Delivery tracker — drive a request's lifecycle from its assignment.

Each step updates the assignment and, where the request kind has a matching
lifecycle edge, moves the request along it as the delivery agent:

    step      purchase                        borrowing                          return_collection
    accept    waiting_for_delivery_manager    -                                  assigned → accepted
              → assigned_to_delivery
    start     assigned_to_delivery            -                                  accepted → in_progress
              → in_delivery
    complete  in_delivery → delivered         assigned_to_delivery → delivered   in_progress → completed
                                              return_assigned → completed

A rejection leaves the lifecycle where it is so an admin can reassign.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from bookflow._policy import Policy
from bookflow._types import ActorRole, Error, Ok, RequestKind, Result, as_date, stamp
from bookflow.delivery import _assignment as A
from bookflow.delivery._types import DeliveryAssignment, DeliveryError, DeliveryErrorKind
from bookflow.fine import assess, days_overdue
from bookflow.lifecycle import (
    BorrowingStatus,
    LifecycleError,
    PurchaseStatus,
    ReturnStatus,
    Status,
    check,
    transition,
)
from bookflow.pricing import reprice

if TYPE_CHECKING:
    from bookflow.order import OrderAggregate

logger = logging.getLogger(__name__)

type DeliveryResult = Result[OrderAggregate, DeliveryError | LifecycleError]

# ═══════════════════════════════════════════════════════════════════════════════
# Step Tables
# ═══════════════════════════════════════════════════════════════════════════════

# Admin edge taken when an agent is assigned. None: assignable, no status change.
_ASSIGN_EDGES: Mapping[tuple[RequestKind, Status], Status | None] = {
    (RequestKind.PURCHASE, PurchaseStatus.WAITING_FOR_DELIVERY_MANAGER): None,
    (RequestKind.BORROWING, BorrowingStatus.APPROVED): BorrowingStatus.ASSIGNED_TO_DELIVERY,
    (RequestKind.BORROWING, BorrowingStatus.RETURN_APPROVED): BorrowingStatus.RETURN_ASSIGNED,
    (RequestKind.RETURN_COLLECTION, ReturnStatus.APPROVED): ReturnStatus.ASSIGNED,
}

# Agent edges per step. A kind absent from a step has no lifecycle move for it.
_AGENT_EDGES: Mapping[str, Mapping[RequestKind, Mapping[Status, Status]]] = {
    "accept": {
        RequestKind.PURCHASE: {
            PurchaseStatus.WAITING_FOR_DELIVERY_MANAGER: PurchaseStatus.ASSIGNED_TO_DELIVERY,
        },
        RequestKind.RETURN_COLLECTION: {
            ReturnStatus.ASSIGNED: ReturnStatus.ACCEPTED,
        },
    },
    "start": {
        RequestKind.PURCHASE: {
            PurchaseStatus.ASSIGNED_TO_DELIVERY: PurchaseStatus.IN_DELIVERY,
        },
        RequestKind.RETURN_COLLECTION: {
            ReturnStatus.ACCEPTED: ReturnStatus.IN_PROGRESS,
        },
    },
    "complete": {
        RequestKind.PURCHASE: {
            PurchaseStatus.IN_DELIVERY: PurchaseStatus.DELIVERED,
        },
        RequestKind.BORROWING: {
            BorrowingStatus.ASSIGNED_TO_DELIVERY: BorrowingStatus.DELIVERED,
            BorrowingStatus.RETURN_ASSIGNED: BorrowingStatus.COMPLETED,
        },
        RequestKind.RETURN_COLLECTION: {
            ReturnStatus.IN_PROGRESS: ReturnStatus.COMPLETED,
        },
    },
}


def is_delivery_eligible(order: OrderAggregate) -> bool:
    """True when an agent may be assigned from the order's current status."""
    return (order.kind, order.status) in _ASSIGN_EDGES


def _advance(
    order: OrderAggregate,
    step: str,
    at: datetime,
) -> Result[OrderAggregate, LifecycleError]:
    edges = _AGENT_EDGES[step].get(order.kind)
    if edges is None:
        return Ok(order)
    target = edges.get(order.status)
    if target is None:
        # Out of step with the assignment: judge the edge the step expects.
        expected = next(iter(edges.values()))
        match check(order.kind, order.status, expected, ActorRole.DELIVERY_AGENT):
            case Error(e):
                return Error(e)
            case Ok(_):
                return Error(LifecycleError.invalid(
                    order.kind, order.status, expected, ActorRole.DELIVERY_AGENT,
                ))
    return transition(order, target, ActorRole.DELIVERY_AGENT, at=at)


def _active(order: OrderAggregate) -> Result[DeliveryAssignment, DeliveryError]:
    if order.delivery_assignment is None:
        return Error(DeliveryError(
            kind=DeliveryErrorKind.NO_ACTIVE_ASSIGNMENT,
            message=f"Request {order.id} has no delivery assignment",
            params={"order_id": str(order.id)},
        ))
    return Ok(order.delivery_assignment)


# ═══════════════════════════════════════════════════════════════════════════════
# Assign
# ═══════════════════════════════════════════════════════════════════════════════


def assign(
    order: OrderAggregate,
    agent_id: int,
    *,
    at: datetime | None = None,
) -> DeliveryResult:
    """
    Admin assigns a delivery agent.

    Only from a delivery-eligible status. Borrowing and return-collection
    requests move along their admin edge; a purchase stays in
    waiting_for_delivery_manager until the agent accepts.

    A finished or rejected earlier assignment moves to superseded_assignments.
    """
    key = (order.kind, order.status)
    if key not in _ASSIGN_EDGES:
        return Error(DeliveryError(
            kind=DeliveryErrorKind.NOT_DELIVERY_ELIGIBLE,
            message=f"A {order.kind.value} request cannot be assigned while {order.status.value}",
            params={"kind": order.kind.value, "status": order.status.value},
        ))

    previous = order.delivery_assignment
    if previous is not None and previous.is_open:
        return Error(DeliveryError(
            kind=DeliveryErrorKind.INVALID_ASSIGNMENT_TRANSITION,
            message=f"Request {order.id} already has an open assignment; reassign instead",
            params={"order_id": str(order.id), "status": previous.status.value},
        ))

    now = stamp(at)
    moved = order
    if (target := _ASSIGN_EDGES[key]) is not None:
        match transition(order, target, ActorRole.ADMIN, at=now):
            case Ok(advanced):
                moved = advanced
            case Error(e):
                return Error(e)

    history = order.superseded_assignments + ((previous,) if previous is not None else ())
    logger.debug("Assigned agent %s to %s %s", agent_id, order.kind.value, order.id)
    return Ok(replace(
        moved,
        delivery_assignment=DeliveryAssignment.new(agent_id, now),
        superseded_assignments=history,
        updated_at=now,
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# Agent Steps
# ═══════════════════════════════════════════════════════════════════════════════


def respond_to_assignment(
    order: OrderAggregate,
    accept: bool,
    reason: str | None = None,
    *,
    at: datetime | None = None,
) -> DeliveryResult:
    now = stamp(at)
    active = _active(order)
    if isinstance(active, Error):
        return active
    current = active.value

    responded = A.respond(current, accept, reason, at=now)
    if isinstance(responded, Error):
        return responded

    if not accept:
        logger.debug("Agent %s rejected %s %s", current.agent_id, order.kind.value, order.id)
        return Ok(replace(order, delivery_assignment=responded.value, updated_at=now))

    advanced = _advance(order, "accept", now)
    if isinstance(advanced, Error):
        return advanced
    return Ok(replace(advanced.value, delivery_assignment=responded.value, updated_at=now))


def start_delivery(
    order: OrderAggregate,
    *,
    at: datetime | None = None,
) -> DeliveryResult:
    now = stamp(at)
    active = _active(order)
    if isinstance(active, Error):
        return active

    started = A.start(active.value, at=now)
    if isinstance(started, Error):
        return started

    advanced = _advance(order, "start", now)
    if isinstance(advanced, Error):
        return advanced
    return Ok(replace(advanced.value, delivery_assignment=started.value, updated_at=now))


def complete_delivery(
    order: OrderAggregate,
    *,
    policy: Policy,
    at: datetime | None = None,
) -> DeliveryResult:
    """
    Agent finishes the trip.

    For borrowing this is where the fine clock starts or stops:
        delivered to the customer → due_date = completion day + borrow period
                                     (unless the backend already set one)
        collected from customer   → actual_return_date recorded and the fine
                                     assessed against due_date, then requoted
    """
    now = stamp(at)
    active = _active(order)
    if isinstance(active, Error):
        return active

    finished = A.complete(active.value, at=now)
    if isinstance(finished, Error):
        return finished

    advanced = _advance(order, "complete", now)
    if isinstance(advanced, Error):
        return advanced

    completed = replace(advanced.value, delivery_assignment=finished.value, updated_at=now)
    if completed.kind is not RequestKind.BORROWING:
        return Ok(completed)

    if completed.status is BorrowingStatus.DELIVERED:
        if completed.due_date is None:
            due = as_date(now) + timedelta(days=completed.borrow_period_days)
            completed = replace(completed, due_date=due)
        return Ok(completed)

    return Ok(_close_borrowing(completed, now, policy))


def _close_borrowing(order: OrderAggregate, at: datetime, policy: Policy) -> OrderAggregate:
    returned = as_date(at)
    fine = order.fine
    if order.due_date is not None and days_overdue(order.due_date, returned) > 0:
        fine = assess(order.due_date, returned, daily_rate=policy.require_fine_daily_rate())
        if fine is not None:
            logger.info(
                "Borrowing %s returned %s day(s) late, fine %s",
                order.id, fine.days_overdue, fine.amount,
            )

    pricing = reprice(order, policy=policy, fine=fine)
    return replace(order, actual_return_date=returned, fine=fine, pricing=pricing)


# ═══════════════════════════════════════════════════════════════════════════════
# Reassign
# ═══════════════════════════════════════════════════════════════════════════════


def reassign_delivery(
    order: OrderAggregate,
    new_agent_id: int,
    *,
    at: datetime | None = None,
) -> DeliveryResult:
    """Admin hands the request to another agent. The lifecycle does not move."""
    now = stamp(at)
    active = _active(order)
    if isinstance(active, Error):
        return active
    current = active.value

    fresh = A.reassign(current, new_agent_id, at=now)
    if isinstance(fresh, Error):
        return fresh

    logger.debug(
        "Reassigned %s %s from agent %s to %s",
        order.kind.value, order.id, current.agent_id, new_agent_id,
    )
    return Ok(replace(
        order,
        delivery_assignment=fresh.value,
        superseded_assignments=order.superseded_assignments + (current,),
        updated_at=now,
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "DeliveryResult",
    "is_delivery_eligible",
    "assign",
    "respond_to_assignment",
    "start_delivery",
    "complete_delivery",
    "reassign_delivery",
)
