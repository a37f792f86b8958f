from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

import pytest

from bookflow import ActorRole, OrderItem, Policy, RequestKind
from bookflow.discount import InvoiceDiscount, ItemDiscount
from bookflow.lifecycle import Status, initial_status
from bookflow.order import OrderAggregate
from bookflow.pricing import compute

NOW = datetime(2024, 1, 5, 12, 0, tzinfo=UTC)
TODAY = NOW.date()


@pytest.fixture
def policy() -> Policy:
    return Policy().with_fine_daily_rate("1.00")


@pytest.fixture
def items() -> tuple[OrderItem, ...]:
    return (OrderItem(book_id=1, quantity=2, unit_price=Decimal("9.99")),)


@pytest.fixture
def invoice_ten() -> InvoiceDiscount:
    return InvoiceDiscount(
        code="save10",
        value=Decimal("10"),
        usage_limit=1,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
    )


@pytest.fixture
def book_sale() -> ItemDiscount:
    return ItemDiscount(
        code="BOOK1",
        book_id=1,
        original_price=Decimal("9.99"),
        discounted_price=Decimal("7.99"),
        usage_limit=2,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
    )


type OrderFactory = Callable[..., OrderAggregate]


@pytest.fixture
def make_order(policy: Policy, items: tuple[OrderItem, ...]) -> OrderFactory:
    """Build an aggregate directly in any status."""

    def build(
        kind: RequestKind = RequestKind.PURCHASE,
        status: Status | None = None,
        **overrides: Any,
    ) -> OrderAggregate:
        lines = overrides.pop("items", items)
        fields: dict[str, Any] = {
            "kind": kind,
            "status": status if status is not None else initial_status(kind),
            "customer_id": 42,
            "items": lines,
            "pricing": compute(lines, Decimal("5.00"), policy=policy),
            "created_at": NOW,
            "updated_at": NOW,
            "id": 1,
        }
        fields.update(overrides)
        return OrderAggregate(**fields)

    return build


ADMIN = ActorRole.ADMIN
CUSTOMER = ActorRole.CUSTOMER
AGENT = ActorRole.DELIVERY_AGENT
