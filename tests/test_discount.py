from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from bookflow import Error, Ok, OrderItem
from bookflow import discount as D
from bookflow.discount import DiscountErrorKind, DiscountUsage, InvoiceDiscount, ItemDiscount

from tests.conftest import NOW, TODAY


def _kind(result):
    match result:
        case Error(e):
            return e.kind
        case Ok(_):
            return None


# ─── construction ──────────────────────────────────────────────────────────────


def test_item_discount_at_full_price_is_malformed():
    result = D.make_item_discount("SALE", 7, "20.00", "20.00", 1, date(2024, 1, 1), date(2024, 1, 31))

    assert _kind(result) is DiscountErrorKind.MALFORMED_ITEM_DISCOUNT
    match result:
        case Error(e):
            assert e.key == "discount.malformed_item_discount"
            assert e.params["code"] == "SALE"


@pytest.mark.parametrize("discounted", ["20.00", "20.01", "35", "-0.01"])
def test_item_discount_requires_a_lower_price(discounted):
    result = D.make_item_discount("SALE", 7, "20.00", discounted, 1, date(2024, 1, 1), date(2024, 1, 31))
    assert _kind(result) is DiscountErrorKind.MALFORMED_ITEM_DISCOUNT

    with pytest.raises(ValueError):
        ItemDiscount(
            code="SALE",
            book_id=7,
            original_price=Decimal("20.00"),
            discounted_price=Decimal(discounted),
            usage_limit=1,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
        )


def test_item_discount_below_price_is_built():
    match D.make_item_discount(" sale ", 7, "20.00", "15.00", 1, date(2024, 1, 1), date(2024, 1, 31)):
        case Ok(discount):
            assert discount.code == "SALE"
            assert discount.kind == "item"
        case Error(e):
            pytest.fail(e.message)


@pytest.mark.parametrize("value", ["0", "-5", "100.01"])
def test_invoice_value_must_be_a_percentage(value):
    with pytest.raises(ValueError):
        D.make_invoice_discount("X", value, 1, date(2024, 1, 1), date(2024, 1, 31))


def test_inverted_window_is_refused():
    with pytest.raises(ValueError):
        D.make_invoice_discount("X", 10, 1, date(2024, 2, 1), date(2024, 1, 1))


# ─── validation ────────────────────────────────────────────────────────────────


def test_code_that_ended_yesterday_is_expired():
    yesterday = TODAY - timedelta(days=1)
    discount = D.make_invoice_discount("OLD", 10, 5, yesterday - timedelta(days=30), yesterday)

    result = D.validate("old", {"OLD": discount}, NOW, [], customer_id=42)

    assert _kind(result) is DiscountErrorKind.EXPIRED


def test_window_compares_calendar_days():
    discount = D.make_invoice_discount("LAST", 10, 5, date(2024, 1, 1), TODAY)
    late_evening = datetime.combine(TODAY, datetime.max.time())

    assert isinstance(D.validate("LAST", {"LAST": discount}, late_evening, [], customer_id=1), Ok)


def test_checks_run_in_order(make_order, invoice_ten):
    inactive_and_expired = D.make_invoice_discount(
        "GONE", 10, 1, date(2023, 1, 1), date(2023, 1, 31), is_active=False,
    )
    catalog = {"GONE": inactive_and_expired, "SAVE10": invoice_ten}
    used = [DiscountUsage(code="save10", customer_id=42)]

    assert _kind(D.validate("", catalog, NOW, [], customer_id=42)) is DiscountErrorKind.INVALID_CODE
    assert _kind(D.validate("NOPE", catalog, NOW, [], customer_id=42)) is DiscountErrorKind.INVALID_CODE
    assert _kind(D.validate("GONE", catalog, NOW, [], customer_id=42)) is DiscountErrorKind.INACTIVE
    assert _kind(D.validate("SAVE10", catalog, NOW, used, customer_id=42)) is DiscountErrorKind.USAGE_LIMIT_EXCEEDED
    # usage is counted per customer
    assert _kind(D.validate("SAVE10", catalog, NOW, used, customer_id=7)) is None


def test_code_already_on_draft(make_order, invoice_ten, policy):
    draft = D.apply(make_order(), invoice_ten, policy=policy, at=NOW)

    result = D.validate("save10", {"SAVE10": invoice_ten}, NOW, [], customer_id=42, draft=draft)

    assert _kind(result) is DiscountErrorKind.ALREADY_APPLIED


def test_book_discount_needs_the_book_in_the_draft(make_order, book_sale):
    other_book = make_order(items=(OrderItem(book_id=99, quantity=1, unit_price="12.00"),))

    result = D.validate("BOOK1", {"BOOK1": book_sale}, NOW, [], customer_id=42, draft=other_book)
    assert _kind(result) is DiscountErrorKind.INVALID_CODE

    result = D.validate("BOOK1", {"BOOK1": book_sale}, NOW, [], customer_id=42, draft=make_order())
    assert _kind(result) is None


def test_catalog_can_be_a_lookup_function(invoice_ten):
    lookup = {"SAVE10": invoice_ten}.get
    assert isinstance(D.validate("save10", lookup, NOW, [], customer_id=1), Ok)


# ─── application ───────────────────────────────────────────────────────────────


def test_applying_twice_gives_the_same_discount(make_order, invoice_ten, policy):
    once = D.apply(make_order(), invoice_ten, policy=policy, at=NOW)
    twice = D.apply(once, invoice_ten, policy=policy, at=NOW)

    assert once.pricing.discount_amount == Decimal("2.00")
    assert twice.pricing == once.pricing
    assert twice.discount_code == "SAVE10"


def test_apply_replaces_previous_discount(make_order, invoice_ten, book_sale, policy):
    with_invoice = D.apply(make_order(), invoice_ten, policy=policy)
    with_book = D.apply(with_invoice, book_sale, policy=policy)

    assert with_book.discount is book_sale
    assert with_book.pricing.discount_amount == Decimal("2.00")
    assert with_book.discount_code == "BOOK1"


def test_remove_requotes(make_order, invoice_ten, policy):
    plain = make_order()
    discounted = D.apply(plain, invoice_ten, policy=policy)

    removed = D.remove(discounted, policy=policy)

    assert removed.discount is None
    assert removed.discount_code is None
    assert removed.pricing == plain.pricing
    assert D.remove(plain, policy=policy) is plain


def test_discount_union_matches_by_kind(invoice_ten, book_sale):
    def describe(application: D.DiscountApplication) -> str:
        match application:
            case InvoiceDiscount(value=percent):
                return f"{percent}%"
            case ItemDiscount(book_id=book):
                return f"book {book}"

    assert describe(invoice_ten) == "10%"
    assert describe(book_sale) == "book 1"
