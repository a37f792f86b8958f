"""
Delivery types — the agent assignment attached to a request.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# ═══════════════════════════════════════════════════════════════════════════════
# Assignment Status
# ═══════════════════════════════════════════════════════════════════════════════


class AssignmentStatus(Enum):
    """
    Status of one delivery assignment.

    Lifecycle:
        ASSIGNED → ACCEPTED → IN_PROGRESS → COMPLETED
                 → REJECTED (reason required)
    """

    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# ═══════════════════════════════════════════════════════════════════════════════
# Assignment
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DeliveryAssignment:
    """
    One agent's assignment to carry a request.

    agent_id is a weak reference into the delivery roster; the roster itself
    belongs to the backend. Reassignment creates a new assignment instead of
    changing agent_id.
    """

    agent_id: int
    status: AssignmentStatus
    assigned_at: datetime
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    rejection_reason: str | None = None

    @classmethod
    def new(cls, agent_id: int, at: datetime) -> DeliveryAssignment:
        return cls(agent_id=agent_id, status=AssignmentStatus.ASSIGNED, assigned_at=at)

    @property
    def is_open(self) -> bool:
        """Still expected to lead to a delivery."""
        return self.status not in (AssignmentStatus.REJECTED, AssignmentStatus.COMPLETED)


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class DeliveryErrorKind(Enum):
    """Kinds of delivery errors. Values are message keys."""

    NOT_DELIVERY_ELIGIBLE = "delivery.not_delivery_eligible"
    INVALID_ASSIGNMENT_TRANSITION = "delivery.invalid_assignment_transition"
    REJECTION_REASON_REQUIRED = "delivery.rejection_reason_required"
    NO_ACTIVE_ASSIGNMENT = "delivery.no_active_assignment"


@dataclass(frozen=True, slots=True)
class DeliveryError:
    kind: DeliveryErrorKind
    message: str
    params: Mapping[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.kind.value


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "AssignmentStatus",
    "DeliveryAssignment",
    "DeliveryErrorKind",
    "DeliveryError",
)
