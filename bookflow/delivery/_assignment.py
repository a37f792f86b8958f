"""
Assignment steps — the agent's own sub-state machine.

Each step returns a new DeliveryAssignment; nothing is mutated.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from bookflow._types import Error, Ok, Result, stamp
from bookflow.delivery._types import (
    AssignmentStatus,
    DeliveryAssignment,
    DeliveryError,
    DeliveryErrorKind,
)


def _invalid(
    assignment: DeliveryAssignment,
    step: str,
    expected: tuple[AssignmentStatus, ...],
) -> Error[DeliveryError]:
    return Error(DeliveryError(
        kind=DeliveryErrorKind.INVALID_ASSIGNMENT_TRANSITION,
        message=(
            f"Cannot {step} an assignment that is {assignment.status.value}; "
            f"expected {', '.join(s.value for s in expected)}"
        ),
        params={"step": step, "status": assignment.status.value},
    ))


def respond(
    assignment: DeliveryAssignment,
    accept: bool,
    reason: str | None = None,
    *,
    at: datetime | None = None,
) -> Result[DeliveryAssignment, DeliveryError]:
    """
    Agent accepts or rejects a fresh assignment.

    A rejection needs a non-blank reason.
    """
    if assignment.status != AssignmentStatus.ASSIGNED:
        return _invalid(assignment, "accept" if accept else "reject", (AssignmentStatus.ASSIGNED,))

    now = stamp(at)
    if accept:
        return Ok(replace(assignment, status=AssignmentStatus.ACCEPTED, accepted_at=now))

    if reason is None or not reason.strip():
        return Error(DeliveryError(
            kind=DeliveryErrorKind.REJECTION_REASON_REQUIRED,
            message="A rejection needs a reason",
            params={"agent_id": str(assignment.agent_id)},
        ))

    return Ok(replace(
        assignment,
        status=AssignmentStatus.REJECTED,
        rejected_at=now,
        rejection_reason=reason.strip(),
    ))


def start(
    assignment: DeliveryAssignment,
    *,
    at: datetime | None = None,
) -> Result[DeliveryAssignment, DeliveryError]:
    if assignment.status != AssignmentStatus.ACCEPTED:
        return _invalid(assignment, "start", (AssignmentStatus.ACCEPTED,))
    return Ok(replace(assignment, status=AssignmentStatus.IN_PROGRESS, started_at=stamp(at)))


def complete(
    assignment: DeliveryAssignment,
    *,
    at: datetime | None = None,
) -> Result[DeliveryAssignment, DeliveryError]:
    if assignment.status != AssignmentStatus.IN_PROGRESS:
        return _invalid(assignment, "complete", (AssignmentStatus.IN_PROGRESS,))
    return Ok(replace(assignment, status=AssignmentStatus.COMPLETED, completed_at=stamp(at)))


def reassign(
    assignment: DeliveryAssignment,
    new_agent_id: int,
    *,
    at: datetime | None = None,
) -> Result[DeliveryAssignment, DeliveryError]:
    """
    Hand the delivery to another agent.

    Only before the agent has accepted, or after they rejected. The old
    assignment is left as it was; the caller keeps it as history.
    """
    allowed = (AssignmentStatus.ASSIGNED, AssignmentStatus.REJECTED)
    if assignment.status not in allowed:
        return _invalid(assignment, "reassign", allowed)
    return Ok(DeliveryAssignment.new(new_agent_id, stamp(at)))


__all__ = (
    "respond",
    "start",
    "complete",
    "reassign",
)
