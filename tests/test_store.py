from dataclasses import replace

import pytest

from bookflow.lifecycle import PurchaseStatus
from bookflow.store import OrderStore


def test_put_replaces_whole_order(make_order):
    store = OrderStore()
    first = make_order(delivery_address="Old street 1")
    store.put(first)

    second = make_order(status=PurchaseStatus.CONFIRMED)
    store.put(second)

    assert store.get(1) is second
    assert store.get(1).delivery_address is None
    assert len(store) == 1


def test_listeners_get_immutable_snapshots(make_order):
    store = OrderStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.put(make_order())
    store.put_many([make_order(id=2), make_order(id=3)])
    assert store.remove(2)
    assert not store.remove(2)

    assert [s.version for s in seen] == [1, 2, 3]
    assert [len(s) for s in seen] == [1, 3, 2]
    assert seen[0].get(2) is None
    with pytest.raises(TypeError):
        seen[-1].orders[9] = make_order(id=9)

    unsubscribe()
    unsubscribe()
    store.put(make_order(id=4))
    assert len(seen) == 3


def test_failing_listener_does_not_block_others(make_order, caplog):
    store = OrderStore()
    seen = []

    def broken(snapshot):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(seen.append)

    store.put(make_order())

    assert len(seen) == 1
    assert "listener" in caplog.text


def test_orders_need_an_id(make_order):
    with pytest.raises(ValueError):
        OrderStore().put(make_order(id=None))


def test_snapshot_is_detached(make_order):
    store = OrderStore([make_order()])
    snap = store.snapshot()

    store.put(replace(make_order(), status=PurchaseStatus.CONFIRMED))

    assert snap.get(1).status is PurchaseStatus.PENDING
    assert snap.version == 0
    assert 1 in store
    assert [o.id for o in snap] == [1]


def test_empty_put_many_is_silent():
    store = OrderStore()
    seen = []
    store.subscribe(seen.append)
    store.put_many([])
    assert seen == []
