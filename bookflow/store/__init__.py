"""
Store — in-memory order store with change listeners.

    from bookflow.store import OrderStore

    store = OrderStore()
    unsubscribe = store.subscribe(lambda snap: print(snap.version, len(snap)))
    store.put(order)
"""

from bookflow.store._store import (
    StoreSnapshot,
    Listener,
    Unsubscribe,
    OrderStore,
)

__all__ = (
    "StoreSnapshot",
    "Listener",
    "Unsubscribe",
    "OrderStore",
)
