"""
Lifecycle machine — validate and apply status changes.

Check order:
    1. current status is terminal      → ALREADY_TERMINAL
    2. (from, to) is not an edge       → INVALID_TRANSITION
    3. role may not take the edge      → INVALID_TRANSITION (role_denied)

A refused transition leaves the order untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from bookflow._types import ActorRole, Error, Ok, RequestKind, Result, stamp
from bookflow.lifecycle._tables import table_for
from bookflow.lifecycle._types import (
    STATUS_ENUMS,
    LifecycleError,
    LifecycleErrorKind,
    Status,
    belongs_to,
)

if TYPE_CHECKING:
    from bookflow.order import OrderAggregate

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Queries
# ═══════════════════════════════════════════════════════════════════════════════


def initial_status(kind: RequestKind) -> Status:
    return table_for(kind).initial


def is_terminal(kind: RequestKind, status: Status) -> bool:
    return table_for(kind).is_terminal(status)


def status_for(kind: RequestKind, value: str) -> Status:
    """
    Parse a wire status string for a kind.

    Raises ValueError for a value outside kind's enumeration.
    """
    enum = STATUS_ENUMS[kind]
    try:
        return enum(value)
    except ValueError:
        raise ValueError(f"{value!r} is not a {kind.value} status") from None


def allowed_next(kind: RequestKind, from_: Status, role: ActorRole) -> frozenset[Status]:
    """Statuses role may move a request of kind to from its current status."""
    table = table_for(kind)
    if table.is_terminal(from_):
        return frozenset()
    return table.next_statuses(from_, role)


def check(
    kind: RequestKind,
    from_: Status,
    to: Status,
    role: ActorRole,
) -> Result[None, LifecycleError]:
    """Validate a transition without applying it."""
    table = table_for(kind)

    if table.is_terminal(from_):
        return Error(LifecycleError(
            kind=LifecycleErrorKind.ALREADY_TERMINAL,
            message=f"{kind.value} request is already {from_.value}",
            params={"kind": kind.value, "status": from_.value},
        ))

    if not belongs_to(kind, to) or not table.has_edge(from_, to):
        return Error(LifecycleError.invalid(kind, from_, to, role))

    if role not in table.roles_for(from_, to):
        return Error(LifecycleError.invalid(kind, from_, to, role, role_denied=True))

    return Ok(None)


def can_transition(
    kind: RequestKind,
    from_: Status,
    to: Status,
    role: ActorRole,
) -> bool:
    return isinstance(check(kind, from_, to, role), Ok)


# ═══════════════════════════════════════════════════════════════════════════════
# Transition
# ═══════════════════════════════════════════════════════════════════════════════


def transition(
    order: OrderAggregate,
    to: Status,
    role: ActorRole,
    *,
    at: datetime | None = None,
) -> Result[OrderAggregate, LifecycleError]:
    """
    Move order to a new status.

    Returns a new aggregate with status and updated_at changed; the input
    is never modified.

    Example:
        match transition(order, PurchaseStatus.CONFIRMED, ActorRole.ADMIN):
            case Ok(confirmed):
                store.put(confirmed)
            case Error(e):
                show(e.key)
    """
    match check(order.kind, order.status, to, role):
        case Error(e):
            logger.debug(
                "Refused %s %s: %s -> %s by %s",
                order.kind.value, order.id, order.status.value, to.value, role.value,
            )
            return Error(e)
        case Ok(_):
            logger.debug(
                "Transition %s %s: %s -> %s by %s",
                order.kind.value, order.id, order.status.value, to.value, role.value,
            )
            return Ok(replace(order, status=to, updated_at=stamp(at)))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "initial_status",
    "is_terminal",
    "status_for",
    "allowed_next",
    "check",
    "can_transition",
    "transition",
)
