"""
Core types for bookflow.

Re-exports from kungfu + the value types every component shares.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

from bookflow.money import Money, money

# ═══════════════════════════════════════════════════════════════════════════════
# Actors
# ═══════════════════════════════════════════════════════════════════════════════


class ActorRole(Enum):
    """
    Who is asking for a change.

    Values are the backend's ``user_type`` strings.
    """

    CUSTOMER = "customer"
    ADMIN = "library_admin"
    DELIVERY_AGENT = "delivery_admin"


# ═══════════════════════════════════════════════════════════════════════════════
# Request Kind
# ═══════════════════════════════════════════════════════════════════════════════


class RequestKind(Enum):
    """Which transition table applies. Fixed when the request is created."""

    PURCHASE = "purchase"
    BORROWING = "borrowing"
    RETURN_COLLECTION = "return_collection"


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Method
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentMethod(Enum):
    """How a customer settles an order or a fine."""

    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"

    @property
    def settles_immediately(self) -> bool:
        """Card and wallet payments get an answer from the gateway right away."""
        return self is not PaymentMethod.CASH


# ═══════════════════════════════════════════════════════════════════════════════
# Line Items
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderItem:
    """
    One book on a request.

    unit_price is the price at the time the item was added; the backend
    keeps it even if the catalog price changes later.
    """

    book_id: int
    quantity: int
    unit_price: Money

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise TypeError("quantity must be int")
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {self.quantity}")
        price = money(self.unit_price)
        if price < 0:
            raise ValueError(f"unit_price must be >= 0, got {price}")
        object.__setattr__(self, "unit_price", price)

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity


# ═══════════════════════════════════════════════════════════════════════════════
# Clock
# ═══════════════════════════════════════════════════════════════════════════════


def utcnow() -> datetime:
    """Timezone-aware now. Every ``at=None`` default resolves through here."""
    return datetime.now(UTC)


def stamp(at: datetime | None) -> datetime:
    return at if at is not None else utcnow()


def as_date(value: date | datetime) -> date:
    """Strip the time of day. Discount windows and fines compare calendar days."""
    if isinstance(value, datetime):
        return value.date()
    return value


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Shared values
    "ActorRole",
    "RequestKind",
    "PaymentMethod",
    "OrderItem",
    # Clock
    "utcnow",
    "stamp",
    "as_date",
)
