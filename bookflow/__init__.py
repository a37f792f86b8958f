"""
bookflow — order lifecycle and pricing for a bookstore and lending library.

    from bookflow import order as O        # Request aggregate
    from bookflow import lifecycle as LC   # Status machines
    from bookflow import discount as D     # Discount codes
    from bookflow import pricing as P      # Totals
    from bookflow import fine as F         # Late returns
    from bookflow import delivery as DL    # Delivery assignments
    from bookflow.sync import SyncSession  # Backend round trips
"""

from bookflow import money
from bookflow import fine
from bookflow import pricing
from bookflow import discount
from bookflow import lifecycle
from bookflow import delivery
from bookflow import order
from bookflow import store
from bookflow import wire
from bookflow import sync
from bookflow._policy import Policy
from bookflow._types import (
    Result,
    Ok,
    Error,
    LazyCoroResult,
    ActorRole,
    RequestKind,
    PaymentMethod,
    OrderItem,
)

__version__ = "0.1.0"

__all__ = (
    # Subpackages
    "money",
    "fine",
    "pricing",
    "discount",
    "lifecycle",
    "delivery",
    "order",
    "store",
    "wire",
    "sync",
    # Configuration
    "Policy",
    # Shared values
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    "ActorRole",
    "RequestKind",
    "PaymentMethod",
    "OrderItem",
)
