"""
Wire — the backend's JSON shapes.

    from bookflow.wire import OrderPayload, decode

    order = decode(OrderPayload, {"order_type": "purchase", "status": "pending", ...})

Payload models accept the field names older endpoints used and always emit
the current ones.
"""

from bookflow.wire.codecs import (
    ToDomain,
    FromDomain,
    decode,
    encode,
    OrderItemPayload,
    DeliveryAssignmentPayload,
    FinePayload,
    OrderNotePayload,
    OrderPayload,
    StatusUpdatePayload,
    InvoiceDiscountPayload,
    BookDiscountPayload,
    ErrorPayload,
    discount_error_from_payload,
)

# Subpackages
from bookflow.wire import codecs

__all__ = (
    # Protocols
    "ToDomain",
    "FromDomain",
    "decode",
    "encode",
    # Payloads
    "OrderItemPayload",
    "DeliveryAssignmentPayload",
    "FinePayload",
    "OrderNotePayload",
    "OrderPayload",
    "StatusUpdatePayload",
    "InvoiceDiscountPayload",
    "BookDiscountPayload",
    # Errors
    "ErrorPayload",
    "discount_error_from_payload",
    # Subpackages
    "codecs",
)
