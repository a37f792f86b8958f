"""
Borrowing — a loan returned late, the fine, and the deposit.

    approve → deliver (due date starts) → return requested → collected late
    → fine assessed → paid in cash → deposit refunded less the fine
"""

from decimal import Decimal

from kungfu import Error, Ok

from bookflow import ActorRole, OrderItem, PaymentMethod, RequestKind
from bookflow import delivery as DL
from bookflow import fine as F
from bookflow import lifecycle as LC
from bookflow import order as O
from bookflow.lifecycle import BorrowingStatus
from examples._infra import POLICY, START, banner, day, run


async def main() -> None:
    banner("Borrowing: Loan")
    loan = O.draft(
        RequestKind.BORROWING,
        customer_id=42,
        items=(OrderItem(book_id=3, quantity=1, unit_price=Decimal("0.00")),),
        policy=POLICY,
        borrow_period_days=14,
        deposit_amount="20.00",
        order_id=2001,
        at=START,
    )

    steps = (
        lambda o: LC.transition(o, BorrowingStatus.APPROVED, ActorRole.ADMIN, at=day(0)),
        lambda o: DL.assign(o, agent_id=7, at=day(0)),
        lambda o: DL.respond_to_assignment(o, accept=True, at=day(0)),
        lambda o: DL.complete_delivery(o, policy=POLICY, at=day(1)),
        lambda o: O.request_extension(o, 3, policy=POLICY, at=day(5)),
        lambda o: O.resolve_extension(o, approve=True, role=ActorRole.ADMIN, at=day(6)),
        lambda o: LC.transition(o, BorrowingStatus.RETURN_REQUESTED, ActorRole.CUSTOMER, at=day(20)),
        lambda o: LC.transition(o, BorrowingStatus.RETURN_APPROVED, ActorRole.ADMIN, at=day(20)),
        lambda o: DL.assign(o, agent_id=9, at=day(21)),
        lambda o: DL.respond_to_assignment(o, accept=True, at=day(21)),
        lambda o: DL.complete_delivery(o, policy=POLICY, at=day(22)),
    )
    for step in steps:
        match step(loan):
            case Ok(moved):
                loan = moved
                print(f"  {loan.status.value:<20} due={loan.due_date} total={loan.pricing.final_total}")
            case Error(e):
                print(f"  ✗ {e.key}: {e.message}")
                return

    banner("Borrowing: Fine")
    charge = loan.fine
    if charge is None:
        print("  returned on time")
        return
    print(f"  {charge.days_overdue} day(s) late, fine {charge.amount}")
    print(f"  deposit frozen: {F.is_deposit_frozen(charge)}")

    match F.record_payment(charge, PaymentMethod.CASH):
        case Ok(pending):
            charge = pending
            print(f"  cash received, awaiting admin: {charge.payment_status.value}")
        case Error(e):
            print(f"  ✗ {e.key}")
            return

    match F.confirm_cash_payment(charge, received=True):
        case Ok(paid):
            charge = paid
            print(f"  {charge.payment_status.value}, deposit frozen: {F.is_deposit_frozen(charge)}")
        case Error(e):
            print(f"  ✗ {e.key}")
            return

    if loan.deposit_amount is not None:
        print(f"  refund due: {F.refund_due(loan.deposit_amount, charge)}")


if __name__ == "__main__":
    run(main)
