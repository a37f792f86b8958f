"""
Sync — keep the order store in step with the backend.

    from bookflow.sync import SyncSession

    session = SyncSession(store, transport, policy)
    match await session.submit_transition(order, BorrowingStatus.APPROVED, ActorRole.ADMIN):
        case Ok(approved): ...
        case Error(e): ...
    session.close()
"""

from bookflow.sync._transport import (
    Transport,
    TransportError,
    CONFLICT,
    SyncErrorKind,
    SyncError,
    transport_failure,
)
from bookflow.sync._session import (
    TransitionResult,
    RedeemResult,
    SyncSession,
)

__all__ = (
    # Transport
    "Transport",
    "TransportError",
    "CONFLICT",
    # Errors
    "SyncErrorKind",
    "SyncError",
    "transport_failure",
    # Session
    "TransitionResult",
    "RedeemResult",
    "SyncSession",
)
