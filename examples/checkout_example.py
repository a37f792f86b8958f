"""
Checkout — a purchase from cart to doorstep.

    draft → discount → confirm → assign agent → accept → start → complete
"""

from kungfu import Error, Ok

from bookflow import ActorRole, RequestKind
from bookflow import delivery as DL
from bookflow import discount as D
from bookflow import lifecycle as LC
from bookflow import order as O
from bookflow.lifecycle import PurchaseStatus
from examples._infra import CART, CATALOG, POLICY, START, banner, day, run


def show(order: O.OrderAggregate) -> None:
    p = order.pricing
    print(f"  {order.status.value:<30} subtotal={p.subtotal} tax={p.tax_amount} "
          f"delivery={p.delivery_cost} discount={p.discount_amount} total={p.final_total}")


async def main() -> None:
    banner("Checkout: Draft")
    cart = O.draft(
        RequestKind.PURCHASE,
        customer_id=42,
        items=CART,
        policy=POLICY,
        delivery_cost="4.00",
        delivery_address="221B Baker Street",
        order_id=1001,
        at=START,
    )
    show(cart)

    banner("Checkout: Discount Codes")
    for code in ("nope", "dune", "spring15"):
        match D.validate(code, CATALOG, START, [], customer_id=42, draft=cart):
            case Ok(application):
                cart = D.apply(cart, application, policy=POLICY, at=START)
                print(f"  ✓ {code}")
                show(cart)
            case Error(e):
                print(f"  ✗ {code}: {e.key}")

    match O.assign_order_number(cart, O.generate_order_number(cart.kind), at=START):
        case Ok(numbered):
            cart = numbered
            print(f"  order number {cart.order_number}")
        case Error(e):
            print(f"  ✗ {e.message}")

    banner("Checkout: Lifecycle")
    print(f"  customer may: {[s.value for s in LC.allowed_next(cart.kind, cart.status, ActorRole.CUSTOMER)]}")
    match LC.transition(cart, PurchaseStatus.CONFIRMED, ActorRole.CUSTOMER, at=day(0)):
        case Error(e):
            print(f"  ✗ customer confirm: {e.key} {dict(e.params)}")
        case Ok(_):
            pass

    steps = (
        lambda o: LC.transition(o, PurchaseStatus.CONFIRMED, ActorRole.ADMIN, at=day(0)),
        lambda o: LC.transition(o, PurchaseStatus.WAITING_FOR_DELIVERY_MANAGER, ActorRole.ADMIN, at=day(0)),
        lambda o: DL.assign(o, agent_id=7, at=day(1)),
        lambda o: DL.respond_to_assignment(o, accept=True, at=day(1)),
        lambda o: DL.start_delivery(o, at=day(2)),
        lambda o: DL.complete_delivery(o, policy=POLICY, at=day(2)),
    )
    order = cart
    for step in steps:
        match step(order):
            case Ok(moved):
                order = moved
                show(order)
            case Error(e):
                print(f"  ✗ {e.key}: {e.message}")
                return

    match O.cancel(order, ActorRole.CUSTOMER, reason="changed my mind", at=day(3)):
        case Error(e):
            print(f"  ✗ cancel after delivery: {e.key}")
        case Ok(_):
            pass


if __name__ == "__main__":
    run(main)
