"""
Transition tables — one immutable state machine schema per request kind.

Each edge carries the set of roles allowed to take it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from bookflow._types import ActorRole, RequestKind
from bookflow.lifecycle._types import (
    BorrowingStatus,
    PurchaseStatus,
    ReturnStatus,
    Status,
)

type Edge = tuple[Status, Status]

_CUSTOMER = ActorRole.CUSTOMER
_ADMIN = ActorRole.ADMIN
_AGENT = ActorRole.DELIVERY_AGENT

# ═══════════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TransitionTable:
    """
    State machine schema for one request kind.

    Fields:
        kind:       Request kind this table governs
        initial:    Status every new request of this kind starts in
        terminal:   Statuses that accept no further transitions
        edges:      {(from, to) → roles allowed to take the edge}
    """

    kind: RequestKind
    initial: Status
    terminal: frozenset[Status]
    edges: Mapping[Edge, frozenset[ActorRole]]

    def __post_init__(self) -> None:
        for from_, _ in self.edges:
            if from_ in self.terminal:
                raise ValueError(f"terminal status {from_.value} has outgoing edges")

    def has_edge(self, from_: Status, to: Status) -> bool:
        return (from_, to) in self.edges

    def roles_for(self, from_: Status, to: Status) -> frozenset[ActorRole]:
        return self.edges.get((from_, to), frozenset())

    def is_terminal(self, status: Status) -> bool:
        return status in self.terminal

    def next_statuses(self, from_: Status, role: ActorRole | None = None) -> frozenset[Status]:
        """Statuses reachable in one step, optionally only those role may take."""
        return frozenset(
            to
            for (src, to), roles in self.edges.items()
            if src == from_ and (role is None or role in roles)
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Purchase
# ═══════════════════════════════════════════════════════════════════════════════

_P = PurchaseStatus

PURCHASE_TABLE = TransitionTable(
    kind=RequestKind.PURCHASE,
    initial=_P.PENDING,
    terminal=frozenset({
        _P.REJECTED_BY_ADMIN,
        _P.REJECTED_BY_DELIVERY_MANAGER,
        _P.DELIVERED,
        _P.COMPLETED,
        _P.CANCELLED,
    }),
    edges={
        (_P.PENDING, _P.CONFIRMED): frozenset({_ADMIN}),
        (_P.PENDING, _P.REJECTED_BY_ADMIN): frozenset({_ADMIN}),
        (_P.PENDING, _P.WAITING_FOR_DELIVERY_MANAGER): frozenset({_ADMIN}),
        (_P.PENDING, _P.CANCELLED): frozenset({_CUSTOMER, _ADMIN}),
        (_P.CONFIRMED, _P.WAITING_FOR_DELIVERY_MANAGER): frozenset({_ADMIN}),
        (_P.CONFIRMED, _P.CANCELLED): frozenset({_CUSTOMER, _ADMIN}),
        (_P.WAITING_FOR_DELIVERY_MANAGER, _P.ASSIGNED_TO_DELIVERY): frozenset({_ADMIN, _AGENT}),
        (_P.WAITING_FOR_DELIVERY_MANAGER, _P.REJECTED_BY_DELIVERY_MANAGER): frozenset({_ADMIN, _AGENT}),
        (_P.ASSIGNED_TO_DELIVERY, _P.IN_DELIVERY): frozenset({_AGENT}),
        (_P.IN_DELIVERY, _P.DELIVERED): frozenset({_AGENT}),
        (_P.IN_DELIVERY, _P.COMPLETED): frozenset({_AGENT}),
    },
)

# ═══════════════════════════════════════════════════════════════════════════════
# Borrowing
# ═══════════════════════════════════════════════════════════════════════════════

_B = BorrowingStatus

BORROWING_TABLE = TransitionTable(
    kind=RequestKind.BORROWING,
    initial=_B.PENDING,
    terminal=frozenset({_B.REJECTED, _B.CANCELLED, _B.COMPLETED}),
    edges={
        (_B.PENDING, _B.APPROVED): frozenset({_ADMIN}),
        (_B.PENDING, _B.REJECTED): frozenset({_ADMIN}),
        (_B.PENDING, _B.CANCELLED): frozenset({_CUSTOMER, _ADMIN}),
        (_B.APPROVED, _B.ASSIGNED_TO_DELIVERY): frozenset({_ADMIN}),
        (_B.ASSIGNED_TO_DELIVERY, _B.DELIVERED): frozenset({_AGENT}),
        (_B.DELIVERED, _B.RETURN_REQUESTED): frozenset({_CUSTOMER}),
        (_B.RETURN_REQUESTED, _B.RETURN_APPROVED): frozenset({_ADMIN}),
        (_B.RETURN_APPROVED, _B.RETURN_ASSIGNED): frozenset({_ADMIN}),
        (_B.RETURN_ASSIGNED, _B.COMPLETED): frozenset({_AGENT}),
    },
)

# ═══════════════════════════════════════════════════════════════════════════════
# Return Collection
# ═══════════════════════════════════════════════════════════════════════════════

_R = ReturnStatus

RETURN_TABLE = TransitionTable(
    kind=RequestKind.RETURN_COLLECTION,
    initial=_R.PENDING,
    terminal=frozenset({_R.COMPLETED}),
    edges={
        (_R.PENDING, _R.APPROVED): frozenset({_ADMIN}),
        (_R.APPROVED, _R.ASSIGNED): frozenset({_ADMIN}),
        (_R.ASSIGNED, _R.ACCEPTED): frozenset({_AGENT}),
        (_R.ACCEPTED, _R.IN_PROGRESS): frozenset({_AGENT}),
        (_R.IN_PROGRESS, _R.COMPLETED): frozenset({_AGENT}),
    },
)

TABLES: Mapping[RequestKind, TransitionTable] = {
    RequestKind.PURCHASE: PURCHASE_TABLE,
    RequestKind.BORROWING: BORROWING_TABLE,
    RequestKind.RETURN_COLLECTION: RETURN_TABLE,
}


def table_for(kind: RequestKind) -> TransitionTable:
    return TABLES[kind]


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Edge",
    "TransitionTable",
    "PURCHASE_TABLE",
    "BORROWING_TABLE",
    "RETURN_TABLE",
    "TABLES",
    "table_for",
)
