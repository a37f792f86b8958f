"""
Lifecycle — per-kind request state machines with role-gated edges.

    from bookflow import lifecycle as LC

    LC.can_transition(RequestKind.PURCHASE, PurchaseStatus.PENDING,
                      PurchaseStatus.CANCELLED, ActorRole.CUSTOMER)  # True

    match LC.transition(order, PurchaseStatus.CONFIRMED, ActorRole.ADMIN):
        case Ok(confirmed): ...
        case Error(e): ...
"""

from bookflow.lifecycle._types import (
    PurchaseStatus,
    BorrowingStatus,
    ReturnStatus,
    Status,
    STATUS_ENUMS,
    belongs_to,
    LifecycleErrorKind,
    LifecycleError,
)
from bookflow.lifecycle._tables import (
    Edge,
    TransitionTable,
    PURCHASE_TABLE,
    BORROWING_TABLE,
    RETURN_TABLE,
    TABLES,
    table_for,
)
from bookflow.lifecycle._machine import (
    initial_status,
    is_terminal,
    status_for,
    allowed_next,
    check,
    can_transition,
    transition,
)

__all__ = (
    # Statuses
    "PurchaseStatus",
    "BorrowingStatus",
    "ReturnStatus",
    "Status",
    "STATUS_ENUMS",
    "belongs_to",
    # Errors
    "LifecycleErrorKind",
    "LifecycleError",
    # Tables
    "Edge",
    "TransitionTable",
    "PURCHASE_TABLE",
    "BORROWING_TABLE",
    "RETURN_TABLE",
    "TABLES",
    "table_for",
    # Machine
    "initial_status",
    "is_terminal",
    "status_for",
    "allowed_next",
    "check",
    "can_transition",
    "transition",
)
