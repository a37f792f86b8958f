"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import Any

from bookflow import OrderItem, Policy
from bookflow.discount import InvoiceDiscount, ItemDiscount, normalize_code
from bookflow.sync import TransportError


# Clock
START = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


def day(n: int) -> datetime:
    """n days after START."""
    return START + timedelta(days=n)


# Config
POLICY = Policy().with_fine_daily_rate("0.50")


# Catalog
CART = (
    OrderItem(book_id=1, quantity=2, unit_price=Decimal("12.50")),
    OrderItem(book_id=2, quantity=1, unit_price=Decimal("30.00")),
)

CATALOG = {
    "SPRING15": InvoiceDiscount(
        code="SPRING15",
        value=Decimal("15"),
        usage_limit=1,
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 31),
        maximum_discount=Decimal("10.00"),
    ),
    "DUNE": ItemDiscount(
        code="DUNE",
        book_id=2,
        original_price=Decimal("30.00"),
        discounted_price=Decimal("22.00"),
        usage_limit=3,
        start_date=date(2024, 2, 1),
        end_date=date(2024, 4, 30),
    ),
}


# Fake backend
@dataclass(slots=True)
class FakeBackend:
    """Answers like the REST backend, from an in-memory dict of order JSON."""

    orders: dict[int, dict[str, Any]] = field(default_factory=dict)
    conflicts: int = 0
    latency: float = 0.01

    async def fetch_order(self, order_id: int) -> Mapping[str, Any]:
        await asyncio.sleep(self.latency)
        if order_id not in self.orders:
            raise TransportError(404, {"detail": "Not found."})
        return self.orders[order_id]

    async def update_status(self, order_id: int, body: Mapping[str, Any]) -> Mapping[str, Any]:
        await asyncio.sleep(self.latency)
        if self.conflicts:
            self.conflicts -= 1
            self._touch(order_id)
            raise TransportError(409, {"detail": "Order was modified."})
        return self._touch(order_id, status=body["status"])

    async def redeem_discount(self, order_id: int, code: str) -> Mapping[str, Any]:
        await asyncio.sleep(self.latency)
        if normalize_code(code) not in CATALOG:
            raise TransportError(400, {"detail": "Invalid discount code."})
        return self._touch(order_id, discount_code=code)

    def _touch(self, order_id: int, **changes: Any) -> dict[str, Any]:
        current = self.orders[order_id]
        updated = datetime.fromisoformat(current["updated_at"]) + timedelta(seconds=1)
        self.orders[order_id] = {**current, **changes, "updated_at": updated.isoformat()}
        return self.orders[order_id]


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    logging.basicConfig(level=logging.INFO, format="  %(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
