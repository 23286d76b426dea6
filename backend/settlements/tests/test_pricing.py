from datetime import date
from decimal import Decimal

import pytest
from django.test import override_settings

from settlements.pricing import calculate_rental_cost
from settlements.refunds import InvalidAmount


def test_calculate_rental_cost_returns_expected_values():
    quote = calculate_rental_cost(
        Decimal("100.00"),
        date(2024, 1, 1),
        date(2024, 1, 6),
        deposit=Decimal("75.00"),
    )

    assert quote.days == 5
    assert quote.rent_amount == Decimal("500.00")
    assert quote.platform_fee == Decimal("50.00")
    assert quote.delivery_fee == Decimal("10")
    assert quote.total_amount == Decimal("560.00")
    assert quote.total_charge == Decimal("635.00")

    totals = quote.as_dict()
    assert totals == {
        "days": "5",
        "daily_rate": "100.00",
        "rent_amount": "500.00",
        "delivery_fee": "10.00",
        "platform_fee": "50.00",
        "total_amount": "560.00",
        "deposit": "75.00",
        "total_charge": "635.00",
    }


def test_day_count_excludes_end_date():
    quote = calculate_rental_cost(Decimal("20"), date(2024, 3, 1), date(2024, 3, 1))

    assert quote.days == 0
    assert quote.rent_amount == Decimal("0")
    assert quote.total_amount == Decimal("10")


def test_day_count_ignores_order_of_dates():
    quote = calculate_rental_cost(Decimal("20"), date(2024, 3, 4), date(2024, 3, 1))

    assert quote.days == 3


@override_settings(
    BOOKING_RENTER_FEE_RATE=Decimal("0.12"),
    BOOKING_DELIVERY_FEE=Decimal("0"),
)
def test_calculate_rental_cost_uses_overridden_settings():
    quote = calculate_rental_cost(Decimal("200.00"), date(2024, 6, 1), date(2024, 6, 4))

    # Base: 3 days * 200 = 600
    assert quote.rent_amount == Decimal("600.00")
    # Platform fee: 12%
    assert quote.platform_fee == Decimal("72.00")
    assert quote.total_amount == Decimal("672.00")


def test_explicit_fees_take_precedence_over_settings():
    quote = calculate_rental_cost(
        Decimal("10"),
        date(2024, 6, 1),
        date(2024, 6, 3),
        delivery_fee="25",
        platform_fee_rate="0",
    )

    assert quote.platform_fee == Decimal("0")
    assert quote.total_amount == Decimal("45")


def test_fractional_fees_are_only_rounded_when_serialized():
    quote = calculate_rental_cost(
        Decimal("33.33"),
        date(2024, 6, 1),
        date(2024, 6, 2),
        delivery_fee=Decimal("0"),
    )

    assert quote.platform_fee == Decimal("3.333")
    assert quote.as_dict()["platform_fee"] == "3.33"


@pytest.mark.parametrize("field", ["price_per_day", "deposit", "delivery_fee"])
def test_negative_amounts_are_rejected(field):
    kwargs = {"deposit": Decimal("0"), "delivery_fee": Decimal("0")}
    price = Decimal("10")
    if field == "price_per_day":
        price = Decimal("-10")
    else:
        kwargs[field] = Decimal("-1")

    with pytest.raises(InvalidAmount):
        calculate_rental_cost(price, date(2024, 1, 1), date(2024, 1, 2), **kwargs)
