"""
Lifecycle types — per-kind status enumerations and lifecycle errors.

Status values are the lower-snake-case strings the backend uses on the wire.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from bookflow._types import ActorRole, RequestKind

# ═══════════════════════════════════════════════════════════════════════════════
# Statuses
# ═══════════════════════════════════════════════════════════════════════════════


class PurchaseStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED_BY_ADMIN = "rejected_by_admin"
    WAITING_FOR_DELIVERY_MANAGER = "waiting_for_delivery_manager"
    REJECTED_BY_DELIVERY_MANAGER = "rejected_by_delivery_manager"
    ASSIGNED_TO_DELIVERY = "assigned_to_delivery"
    IN_DELIVERY = "in_delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BorrowingStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    ASSIGNED_TO_DELIVERY = "assigned_to_delivery"
    DELIVERED = "delivered"
    RETURN_REQUESTED = "return_requested"
    RETURN_APPROVED = "return_approved"
    RETURN_ASSIGNED = "return_assigned"
    COMPLETED = "completed"


class ReturnStatus(Enum):
    """Statuses of a return tracked as its own request."""

    PENDING = "pending"
    APPROVED = "approved"
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


type Status = PurchaseStatus | BorrowingStatus | ReturnStatus

STATUS_ENUMS: Mapping[RequestKind, type[Enum]] = {
    RequestKind.PURCHASE: PurchaseStatus,
    RequestKind.BORROWING: BorrowingStatus,
    RequestKind.RETURN_COLLECTION: ReturnStatus,
}


def belongs_to(kind: RequestKind, status: object) -> bool:
    """True when status is a member of kind's own enumeration."""
    return isinstance(status, STATUS_ENUMS[kind])


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class LifecycleErrorKind(Enum):
    """Kinds of lifecycle errors. Values are message keys."""

    INVALID_TRANSITION = "lifecycle.invalid_transition"
    ALREADY_TERMINAL = "lifecycle.already_terminal"
    STALE_STATE = "lifecycle.stale_state"
    UNAUTHORIZED = "lifecycle.unauthorized"


@dataclass(frozen=True, slots=True)
class LifecycleError:
    """
    A refused lifecycle change.

    role_denied: the edge exists but the actor may not take it.
    """

    kind: LifecycleErrorKind
    message: str
    params: Mapping[str, str] = field(default_factory=dict)
    role_denied: bool = False

    @property
    def key(self) -> str:
        return self.kind.value

    @classmethod
    def invalid(
        cls,
        kind: RequestKind,
        from_: Status,
        to: Status,
        role: ActorRole,
        *,
        role_denied: bool = False,
    ) -> LifecycleError:
        reason = "not permitted for" if role_denied else "no such edge for"
        return cls(
            kind=LifecycleErrorKind.INVALID_TRANSITION,
            message=f"{from_.value} -> {to.value}: {reason} {role.value}",
            params={
                "kind": kind.value,
                "from": from_.value,
                "to": to.value,
                "role": role.value,
            },
            role_denied=role_denied,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "PurchaseStatus",
    "BorrowingStatus",
    "ReturnStatus",
    "Status",
    "STATUS_ENUMS",
    "belongs_to",
    "LifecycleErrorKind",
    "LifecycleError",
)
