"""
Discount payloads — invoice discounts and book discounts.

Book discounts come from outside and may be malformed (a sale price that is
not below the book's price), so BookDiscountPayload.to_domain returns a
Result rather than raising.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from bookflow._types import Result
from bookflow.discount import (
    DiscountError,
    InvoiceDiscount,
    ItemDiscount,
    make_invoice_discount,
    make_item_discount,
)
from bookflow.wire.codecs._order import CalendarDay


class InvoiceDiscountPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: str
    value: Decimal = Field(validation_alias=AliasChoices("value", "discount_percentage"))
    usage_limit: int = Field(
        default=1,
        validation_alias=AliasChoices("usage_limit", "usage_limit_per_customer"),
    )
    start_date: CalendarDay = date.min
    end_date: CalendarDay = Field(validation_alias=AliasChoices("end_date", "expiration_date"))
    is_active: bool = True
    minimum_amount: Decimal | None = None
    maximum_discount: Decimal | None = None

    def to_domain(self) -> InvoiceDiscount:
        """
        Raises:
            ValueError: value outside (0, 100] or an inverted window.
        """
        return make_invoice_discount(
            self.code,
            self.value,
            self.usage_limit,
            self.start_date,
            self.end_date,
            is_active=self.is_active,
            minimum_amount=self.minimum_amount,
            maximum_discount=self.maximum_discount,
        )

    @classmethod
    def from_domain(cls, dom: InvoiceDiscount) -> InvoiceDiscountPayload:
        return cls(
            code=dom.code,
            value=dom.value,
            usage_limit=dom.usage_limit,
            start_date=dom.start_date,
            end_date=dom.end_date,
            is_active=dom.is_active,
            minimum_amount=dom.minimum_amount,
            maximum_discount=dom.maximum_discount,
        )


class BookDiscountPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: str
    book_id: int = Field(validation_alias=AliasChoices("book_id", "book"))
    original_price: Decimal = Field(
        validation_alias=AliasChoices("original_price", "book_price"),
    )
    discounted_price: Decimal
    usage_limit: int = Field(
        default=1,
        validation_alias=AliasChoices("usage_limit", "usage_limit_per_customer"),
    )
    start_date: CalendarDay = date.min
    end_date: CalendarDay = Field(validation_alias=AliasChoices("end_date", "expiration_date"))
    is_active: bool = True

    def to_domain(self) -> Result[ItemDiscount, DiscountError]:
        return make_item_discount(
            self.code,
            self.book_id,
            self.original_price,
            self.discounted_price,
            self.usage_limit,
            self.start_date,
            self.end_date,
            is_active=self.is_active,
        )

    @classmethod
    def from_domain(cls, dom: ItemDiscount) -> BookDiscountPayload:
        return cls(
            code=dom.code,
            book_id=dom.book_id,
            original_price=dom.original_price,
            discounted_price=dom.discounted_price,
            usage_limit=dom.usage_limit,
            start_date=dom.start_date,
            end_date=dom.end_date,
            is_active=dom.is_active,
        )


__all__ = (
    "InvoiceDiscountPayload",
    "BookDiscountPayload",
)
