"""
Codecs — pydantic payloads for the backend's JSON resources.

    from bookflow.wire.codecs import OrderPayload, decode, encode

    order = decode(OrderPayload, response_json)
    body = encode(OrderPayload, order)
"""

from bookflow.wire.codecs._protocols import (
    ToDomain,
    FromDomain,
    decode,
    encode,
)
from bookflow.wire.codecs._order import (
    calendar_day,
    CalendarDay,
    OrderItemPayload,
    DeliveryAssignmentPayload,
    FinePayload,
    OrderNotePayload,
    OrderPayload,
    StatusUpdatePayload,
)
from bookflow.wire.codecs._discount import (
    InvoiceDiscountPayload,
    BookDiscountPayload,
)
from bookflow.wire.codecs._errors import (
    ErrorPayload,
    discount_error_from_payload,
)

__all__ = (
    # Protocols
    "ToDomain",
    "FromDomain",
    "decode",
    "encode",
    # Orders
    "calendar_day",
    "CalendarDay",
    "OrderItemPayload",
    "DeliveryAssignmentPayload",
    "FinePayload",
    "OrderNotePayload",
    "OrderPayload",
    "StatusUpdatePayload",
    # Discounts
    "InvoiceDiscountPayload",
    "BookDiscountPayload",
    # Errors
    "ErrorPayload",
    "discount_error_from_payload",
)
