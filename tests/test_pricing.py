from datetime import date, datetime
from decimal import Decimal

import pytest

from storeaway.services.pricing import (
    build_quote,
    compute_total,
    from_minor_units,
    to_minor_units,
)


def test_thirty_days_at_300_per_month():
    total = compute_total(Decimal("300"), date(2024, 7, 1), date(2024, 7, 31))
    assert total == Decimal("295.66")


@pytest.mark.parametrize(
    "start, end",
    [
        (date(2024, 7, 31), date(2024, 7, 1)),
        (date(2024, 7, 1), date(2024, 7, 1)),
    ],
)
def test_non_positive_range_prices_to_zero(start, end):
    assert compute_total(Decimal("300"), start, end) == Decimal("0.00")


def test_same_inputs_same_total():
    args = (Decimal("179.99"), date(2024, 1, 15), date(2024, 4, 2))
    assert compute_total(*args) == compute_total(*args)


def test_rounds_to_cents():
    assert compute_total(Decimal("30.44"), date(2024, 1, 1), date(2024, 1, 2)) == Decimal("1.00")
    assert compute_total(Decimal("100"), date(2024, 1, 1), date(2024, 1, 2)) == Decimal("3.29")


def test_partial_days_round_up_for_datetimes():
    total = compute_total(Decimal("30.44"), datetime(2024, 1, 1, 0, 0), datetime(2024, 1, 2, 1, 0))
    assert total == Decimal("2.00")


def test_total_is_decimal():
    assert isinstance(compute_total(300, date(2024, 7, 1), date(2024, 7, 31)), Decimal)


def test_minor_unit_conversion():
    assert to_minor_units(Decimal("295.66")) == 29566
    assert to_minor_units(Decimal("0.10")) == 10
    assert from_minor_units(29566) == Decimal("295.66")


def test_quote_charges_what_it_displays():
    quote = build_quote(Decimal("450"), date(2024, 8, 1), date(2024, 9, 1), "usd")
    assert quote.days == 31
    assert quote.total == compute_total(Decimal("450"), date(2024, 8, 1), date(2024, 9, 1))
    assert quote.amount_minor == to_minor_units(quote.total)
    assert quote.is_valid


def test_quote_for_reversed_dates_is_invalid():
    quote = build_quote(Decimal("450"), date(2024, 9, 1), date(2024, 8, 1), "usd")
    assert quote.total == Decimal("0.00")
    assert quote.days == 0
    assert not quote.is_valid
