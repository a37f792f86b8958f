"""
Order — the request aggregate and the operations around it.

    from bookflow import order as O

    cart = O.draft(RequestKind.PURCHASE, customer_id=42, items=items,
                   policy=policy, delivery_cost="5.00")
    cart = O.assign_order_number(cart, O.generate_order_number(cart.kind)).value
"""

from bookflow.order._types import (
    MAX_BORROW_PERIOD_DAYS,
    OrderNote,
    NotePermissions,
    OrderAggregate,
)
from bookflow.order._aggregate import (
    draft,
    requote,
    generate_order_number,
    assign_order_number,
    add_note,
    edit_note,
    delete_note,
    grant_note_permissions,
    observe_return,
    request_extension,
    resolve_extension,
    cancel,
)

__all__ = (
    # Types
    "MAX_BORROW_PERIOD_DAYS",
    "OrderNote",
    "NotePermissions",
    "OrderAggregate",
    # Creation
    "draft",
    "requote",
    # Order number
    "generate_order_number",
    "assign_order_number",
    # Notes
    "add_note",
    "edit_note",
    "delete_note",
    "grant_note_permissions",
    # Borrowing
    "observe_return",
    "request_extension",
    "resolve_extension",
    # Cancel
    "cancel",
)
