"""
Order store — the client's copy of every request it has seen.

Orders are replaced wholesale, never merged: a put swaps the whole
aggregate for the new one. Listeners get an immutable snapshot after each
change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from bookflow.order import OrderAggregate

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class StoreSnapshot:
    """
    Read-only view of the store at one version.

    version increases by one with every change, so a listener can tell two
    snapshots apart without comparing orders.
    """

    version: int
    orders: Mapping[int, OrderAggregate] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, order_id: int) -> OrderAggregate | None:
        return self.orders.get(order_id)

    def __len__(self) -> int:
        return len(self.orders)

    def __iter__(self) -> Iterator[OrderAggregate]:
        return iter(self.orders.values())


type Listener = Callable[[StoreSnapshot], None]
type Unsubscribe = Callable[[], None]


# ═══════════════════════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStore:
    """
    In-memory order store keyed by request id.

    Not thread-safe; meant to be driven from one event loop.

    Example:
        store = OrderStore()
        unsubscribe = store.subscribe(lambda snap: render(snap))
        store.put(order)
        unsubscribe()
    """

    def __init__(self, orders: Iterable[OrderAggregate] = ()) -> None:
        self._orders: dict[int, OrderAggregate] = {}
        self._listeners: list[Listener] = []
        self._version = 0
        for order in orders:
            self._orders[_key(order)] = order

    # ───────────────────────────────────────────────────────────────────────────
    # Reads
    # ───────────────────────────────────────────────────────────────────────────

    def get(self, order_id: int) -> OrderAggregate | None:
        return self._orders.get(order_id)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders

    def __len__(self) -> int:
        return len(self._orders)

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            version=self._version,
            orders=MappingProxyType(dict(self._orders)),
        )

    # ───────────────────────────────────────────────────────────────────────────
    # Writes
    # ───────────────────────────────────────────────────────────────────────────

    def put(self, order: OrderAggregate) -> None:
        """
        Replace the stored copy of this order.

        Raises:
            ValueError: order has no id yet.
        """
        key = _key(order)
        self._orders[key] = order
        logger.debug("Stored request %s (%s, %s)", key, order.kind.value, order.status.value)
        self._changed()

    def put_many(self, orders: Iterable[OrderAggregate]) -> None:
        """Replace several orders; listeners are notified once."""
        batch = {_key(order): order for order in orders}
        if not batch:
            return
        self._orders.update(batch)
        logger.debug("Stored %d request(s)", len(batch))
        self._changed()

    def remove(self, order_id: int) -> bool:
        """Drop an order. Returns False if it was not stored."""
        if self._orders.pop(order_id, None) is None:
            return False
        logger.debug("Removed request %s", order_id)
        self._changed()
        return True

    # ───────────────────────────────────────────────────────────────────────────
    # Listeners
    # ───────────────────────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """
        Call listener with a snapshot after every change.

        Returns a function that removes the listener; calling it twice is
        harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self._version += 1
        snap = self.snapshot()
        for listener in tuple(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("Store listener %r failed at version %d", listener, snap.version)


def _key(order: OrderAggregate) -> int:
    if order.id is None:
        raise ValueError("only requests with an id can be stored")
    return order.id


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "StoreSnapshot",
    "Listener",
    "Unsubscribe",
    "OrderStore",
)
