"""
Delivery — agent assignments and the lifecycle moves they trigger.

Assignment level (pure sub-state machine):

    from bookflow.delivery import respond, start, complete, reassign

Request level (assignment + lifecycle together):

    from bookflow import delivery as DL

    order = DL.assign(order, agent_id=7).value
    order = DL.respond_to_assignment(order, accept=True).value
    order = DL.start_delivery(order).value
    order = DL.complete_delivery(order, policy=policy).value
"""

from bookflow.delivery._types import (
    AssignmentStatus,
    DeliveryAssignment,
    DeliveryErrorKind,
    DeliveryError,
)
from bookflow.delivery._assignment import (
    respond,
    start,
    complete,
    reassign,
)
from bookflow.delivery._tracker import (
    DeliveryResult,
    is_delivery_eligible,
    assign,
    respond_to_assignment,
    start_delivery,
    complete_delivery,
    reassign_delivery,
)

__all__ = (
    # Types
    "AssignmentStatus",
    "DeliveryAssignment",
    "DeliveryErrorKind",
    "DeliveryError",
    # Assignment level
    "respond",
    "start",
    "complete",
    "reassign",
    # Request level
    "DeliveryResult",
    "is_delivery_eligible",
    "assign",
    "respond_to_assignment",
    "start_delivery",
    "complete_delivery",
    "reassign_delivery",
)
