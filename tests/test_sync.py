import asyncio
from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest

from bookflow import Error, Ok, Policy
from bookflow.discount import DiscountError, DiscountErrorKind
from bookflow.lifecycle import LifecycleError, LifecycleErrorKind, PurchaseStatus
from bookflow.store import OrderStore
from bookflow.sync import SyncError, SyncErrorKind, SyncSession, TransportError
from bookflow.wire import OrderPayload, encode

from tests.conftest import ADMIN, CUSTOMER, NOW


class FakeBackend:
    """Keeps the authoritative copy of each order as JSON."""

    def __init__(self, *orders):
        self.orders = {o.id: encode(OrderPayload, o) for o in orders}
        self.calls: list[tuple[str, int]] = []
        self.conflicts = 0
        self.fail_with: Exception | None = None
        self.refusal: dict | None = None
        self.on_call = None

    def _bump(self, order_id, **changes):
        current = self.orders[order_id]
        stamp = NOW + timedelta(minutes=len(self.calls))
        self.orders[order_id] = {**current, **changes, "updated_at": stamp.isoformat()}
        return self.orders[order_id]

    async def _enter(self, name, order_id):
        self.calls.append((name, order_id))
        if self.on_call is not None:
            self.on_call()
        if self.fail_with is not None:
            raise self.fail_with
        await asyncio.sleep(0)

    async def fetch_order(self, order_id):
        await self._enter("fetch_order", order_id)
        return self.orders[order_id]

    async def update_status(self, order_id, body):
        await self._enter("update_status", order_id)
        if self.conflicts:
            self.conflicts -= 1
            raise TransportError(409, {"detail": "stale"})
        changes = {"status": body["status"]}
        if "cancellation_reason" in body:
            changes["cancellation_reason"] = body["cancellation_reason"]
        return self._bump(order_id, **changes)

    async def redeem_discount(self, order_id, code):
        await self._enter("redeem_discount", order_id)
        if self.refusal is not None:
            raise TransportError(400, self.refusal)
        return self._bump(
            order_id,
            discount_code=code,
            discount_amount="2.00",
            total_amount="24.58",
        )


@pytest.fixture
def setup(make_order):
    order = make_order(id=17)
    store = OrderStore([order])
    backend = FakeBackend(order)
    session = SyncSession(store, backend, Policy())
    return order, store, backend, session


def test_transition_round_trip(setup):
    order, store, backend, session = setup

    result = asyncio.run(session.submit_transition(order, PurchaseStatus.CONFIRMED, ADMIN))

    match result:
        case Ok(confirmed):
            assert confirmed.status is PurchaseStatus.CONFIRMED
            assert store.get(17) is confirmed
        case Error(e):
            pytest.fail(e.message)
    assert backend.calls == [("update_status", 17)]


def test_illegal_transition_never_reaches_backend(setup):
    order, store, backend, session = setup

    match asyncio.run(session.submit_transition(order, PurchaseStatus.CONFIRMED, CUSTOMER)):
        case Error(LifecycleError(kind=kind)):
            assert kind is LifecycleErrorKind.INVALID_TRANSITION
        case other:
            pytest.fail(f"unexpected {other!r}")
    assert backend.calls == []


def test_cancel_reason_is_sent(setup):
    order, store, backend, session = setup

    result = asyncio.run(session.submit_transition(order, PurchaseStatus.CANCELLED, CUSTOMER, reason="duplicate"))

    assert isinstance(result, Ok)
    assert store.get(17).cancellation_reason == "duplicate"


def test_conflict_refetches_and_retries_once(setup):
    order, store, backend, session = setup
    backend.conflicts = 1

    result = asyncio.run(session.submit_transition(order, PurchaseStatus.CONFIRMED, ADMIN))

    assert isinstance(result, Ok)
    assert [name for name, _ in backend.calls] == ["update_status", "fetch_order", "update_status"]


def test_second_conflict_surfaces_as_stale(setup):
    order, store, backend, session = setup
    backend.conflicts = 2

    match asyncio.run(session.submit_transition(order, PurchaseStatus.CONFIRMED, ADMIN)):
        case Error(LifecycleError(kind=kind)):
            assert kind is LifecycleErrorKind.STALE_STATE
        case other:
            pytest.fail(f"unexpected {other!r}")
    assert len(backend.calls) == 3


def test_locally_stale_snapshot_is_refreshed_first(setup):
    order, store, backend, session = setup
    store.put(replace(order, updated_at=NOW + timedelta(seconds=5)))

    result = asyncio.run(session.submit_transition(order, PurchaseStatus.CONFIRMED, ADMIN))

    assert isinstance(result, Ok)
    assert backend.calls[0] == ("fetch_order", 17)


def test_refresh_revalidates_against_fresh_state(setup):
    order, store, backend, session = setup
    backend.orders[17] = {**backend.orders[17], "status": "cancelled", "updated_at": (NOW + timedelta(hours=1)).isoformat()}
    backend.conflicts = 1

    match asyncio.run(session.submit_transition(order, PurchaseStatus.CONFIRMED, ADMIN)):
        case Error(LifecycleError(kind=kind)):
            assert kind is LifecycleErrorKind.ALREADY_TERMINAL
        case other:
            pytest.fail(f"unexpected {other!r}")
    assert store.get(17).status is PurchaseStatus.CANCELLED


def test_transport_failure(setup):
    order, store, backend, session = setup
    backend.fail_with = TransportError(503)

    match asyncio.run(session.refresh(17)):
        case Error(SyncError(kind=kind, status=status)):
            assert kind is SyncErrorKind.TRANSPORT
            assert status == 503
        case other:
            pytest.fail(f"unexpected {other!r}")
    assert store.get(17) is order


def test_network_exception_becomes_transport_error(setup):
    order, store, backend, session = setup
    backend.fail_with = TimeoutError("read timed out")

    match asyncio.run(session.submit_transition(order, PurchaseStatus.CONFIRMED, ADMIN)):
        case Error(SyncError(kind=kind, status=status)):
            assert kind is SyncErrorKind.TRANSPORT
            assert status is None
        case other:
            pytest.fail(f"unexpected {other!r}")


def test_undecodable_response(setup):
    order, store, backend, session = setup
    backend.orders[17] = {**backend.orders[17], "status": "teleported"}

    match asyncio.run(session.refresh(17)):
        case Error(SyncError(kind=kind)):
            assert kind is SyncErrorKind.DECODE
        case other:
            pytest.fail(f"unexpected {other!r}")


def test_redeem_discount(setup):
    order, store, backend, session = setup

    match asyncio.run(session.redeem_discount(order, " save10 ")):
        case Ok(discounted):
            assert discounted.discount_code == "SAVE10"
            assert discounted.pricing.discount_amount == Decimal("2.00")
            assert store.get(17) is discounted
        case Error(e):
            pytest.fail(e.message)


def test_redeem_refusal_maps_to_discount_error(setup):
    order, store, backend, session = setup
    backend.refusal = {"error": "code_expired", "message": "This discount code has expired."}

    match asyncio.run(session.redeem_discount(order, "OLD")):
        case Error(DiscountError(kind=kind)):
            assert kind is DiscountErrorKind.EXPIRED
        case other:
            pytest.fail(f"unexpected {other!r}")
    assert store.get(17) is order


def test_response_after_close_is_discarded(setup):
    order, store, backend, session = setup
    seen = []
    store.subscribe(seen.append)
    backend.on_call = session.close

    match asyncio.run(session.submit_transition(order, PurchaseStatus.CONFIRMED, ADMIN)):
        case Error(SyncError(kind=kind)):
            assert kind is SyncErrorKind.DISCARDED
        case other:
            pytest.fail(f"unexpected {other!r}")
    assert seen == []
    assert store.get(17) is order


def test_closed_session_sends_nothing(setup):
    order, store, backend, session = setup

    async def run():
        async with session:
            pass
        return await session.refresh(17)

    result = asyncio.run(run())

    assert session.closed
    assert isinstance(result, Error)
    assert backend.calls == []


def test_nothing_happens_until_awaited(setup):
    order, store, backend, session = setup
    session.submit_transition(order, PurchaseStatus.CONFIRMED, ADMIN)
    assert backend.calls == []


def test_field_error_refusal_is_a_value(setup):
    order, store, backend, session = setup
    backend.refusal = {"code": ["This field may not be blank."]}

    match asyncio.run(session.redeem_discount(order, "X")):
        case Error(DiscountError(kind=kind)):
            assert kind is DiscountErrorKind.INVALID_CODE
        case other:
            pytest.fail(f"unexpected {other!r}")
    assert store.get(17) is order


def test_unreadable_refusal_falls_back_to_transport_error(setup):
    order, store, backend, session = setup
    backend.refusal = {"detail": "nope", "params": ["not", "a", "mapping"]}

    match asyncio.run(session.redeem_discount(order, "X")):
        case Error(SyncError(kind=kind, status=status)):
            assert kind is SyncErrorKind.TRANSPORT
            assert status == 400
        case other:
            pytest.fail(f"unexpected {other!r}")


def test_unsaved_request_cannot_be_synced(setup):
    order, store, backend, session = setup
    unsaved = replace(order, id=None)

    with pytest.raises(ValueError, match="stored requests"):
        asyncio.run(session.submit_transition(unsaved, PurchaseStatus.CONFIRMED, ADMIN))
    with pytest.raises(ValueError, match="stored requests"):
        session.redeem_discount(unsaved, "SAVE10")
    assert backend.calls == []
