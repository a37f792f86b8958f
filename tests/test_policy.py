from decimal import Decimal

import pytest

from bookflow import Policy
from bookflow.order import MAX_BORROW_PERIOD_DAYS


def test_defaults():
    policy = Policy()
    assert policy.tax_rate == Decimal("0.08")
    assert policy.fine_daily_rate is None
    assert policy.max_extension_days == 7
    assert policy.max_borrow_period_days == 30


def test_fluent_builders_return_new_policies():
    base = Policy()
    configured = base.with_tax_rate("0.05").with_fine_daily_rate("0.50").with_max_extension_days(3)

    assert base.tax_rate == Decimal("0.08")
    assert configured.tax_rate == Decimal("0.05")
    assert configured.fine_daily_rate == Decimal("0.50")
    assert configured.max_extension_days == 3


def test_fine_rate_must_be_configured():
    with pytest.raises(ValueError, match="fine_daily_rate"):
        Policy().require_fine_daily_rate()
    assert Policy().with_fine_daily_rate(2).require_fine_daily_rate() == Decimal("2")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"tax_rate": Decimal("1")},
        {"tax_rate": Decimal("-0.01")},
        {"fine_daily_rate": Decimal("-1")},
        {"max_extension_days": 0},
        {"max_borrow_period_days": -1},
        {"max_borrow_period_days": 31},
    ],
)
def test_rejects_out_of_range_values(kwargs):
    with pytest.raises(ValueError):
        Policy(**kwargs)


def test_from_mapping_ignores_unknown_keys():
    policy = Policy.from_mapping({
        "tax_rate": "0.10",
        "fine_daily_rate": 0.25,
        "max_extension_days": "5",
        "currency": "USD",
    })
    assert policy.tax_rate == Decimal("0.10")
    assert policy.fine_daily_rate == Decimal("0.25")
    assert policy.max_extension_days == 5
    assert policy.max_borrow_period_days == 30


def test_from_mapping_rejects_non_numbers():
    with pytest.raises(TypeError):
        Policy.from_mapping({"tax_rate": ["0.1"]})


def test_borrow_period_can_shorten_but_not_exceed_the_loan_ceiling():
    assert Policy().with_max_borrow_period_days(14).max_borrow_period_days == 14
    assert Policy().with_max_borrow_period_days(MAX_BORROW_PERIOD_DAYS).max_borrow_period_days == 30
    with pytest.raises(ValueError, match="max_borrow_period_days"):
        Policy().with_max_borrow_period_days(45)
