"""
Sync — keeping a local store in step with the backend.

    refresh → subscribe → transition (with a conflict) → redeem code → close
"""

from kungfu import Error, Ok

from bookflow import ActorRole, RequestKind
from bookflow import order as O
from bookflow.lifecycle import PurchaseStatus
from bookflow.store import OrderStore, StoreSnapshot
from bookflow.sync import SyncSession
from bookflow.wire import OrderPayload, encode
from examples._infra import CART, POLICY, START, FakeBackend, banner, run


async def main() -> None:
    seed = O.draft(RequestKind.PURCHASE, 42, CART, policy=POLICY, delivery_cost="4.00", order_id=3001, at=START)
    backend = FakeBackend(orders={3001: encode(OrderPayload, seed)})
    store = OrderStore()

    def on_change(snapshot: StoreSnapshot) -> None:
        print(f"  store v{snapshot.version}: {[(o.id, o.status.value) for o in snapshot]}")

    unsubscribe = store.subscribe(on_change)

    async with SyncSession(store, backend, POLICY) as session:
        banner("Sync: Refresh")
        match await session.refresh(3001):
            case Ok(order):
                print(f"  fetched {order.id} ({order.status.value})")
            case Error(e):
                print(f"  ✗ {e.key}: {e.message}")
                return

        banner("Sync: Transition With Conflict")
        backend.conflicts = 1
        match await session.submit_transition(order, PurchaseStatus.CONFIRMED, ActorRole.ADMIN):
            case Ok(order):
                print(f"  confirmed after retry, updated_at={order.updated_at.isoformat()}")
            case Error(e):
                print(f"  ✗ {e.key}: {e.message}")

        banner("Sync: Redeem")
        for code in ("bogus", "spring15"):
            match await session.redeem_discount(order, code):
                case Ok(order):
                    print(f"  ✓ {code} → {order.discount_code}")
                case Error(e):
                    print(f"  ✗ {code}: {e.key}")

        banner("Sync: Illegal Edge Stays Local")
        match await session.submit_transition(order, PurchaseStatus.DELIVERED, ActorRole.CUSTOMER):
            case Error(e):
                print(f"  ✗ {e.key} {dict(e.params)}")
            case Ok(_):
                pass

    banner("Sync: Closed")
    match await session.refresh(3001):
        case Error(e):
            print(f"  ✗ {e.key}")
        case Ok(_):
            pass

    unsubscribe()


if __name__ == "__main__":
    run(main)
