from datetime import date
from decimal import Decimal

import pytest

from propdesk.models.property.property import Property
from propdesk.services.booking.booking_pricing_service import compute_price

from tests.conftest import ORG_ID


def test_daily_rate_scenario():
    prop = Property(daily_rate=Decimal("800"), monthly_rent=None)

    quote = compute_price(prop, date(2024, 3, 1), date(2024, 3, 4))

    assert quote.nights == 3
    assert quote.base_rate == Decimal("800")
    assert quote.total_amount == Decimal("2400")


def test_daily_rate_wins_over_monthly_rent():
    prop = Property(daily_rate=Decimal("500"), monthly_rent=Decimal("9000"))

    assert compute_price(prop, date(2024, 3, 1), date(2024, 3, 3)).total_amount == Decimal("1000")


def test_monthly_rent_uses_thirty_day_month():
    prop = Property(daily_rate=None, monthly_rent=Decimal("9000"))

    quote = compute_price(prop, date(2024, 3, 1), date(2024, 3, 4))

    assert quote.base_rate == Decimal("300")
    assert quote.total_amount == Decimal("900")


def test_monthly_rent_amounts_are_not_rounded():
    prop = Property(daily_rate=None, monthly_rent=Decimal("1000"))

    quote = compute_price(prop, date(2024, 3, 1), date(2024, 3, 2))

    assert quote.total_amount == Decimal("1000") / Decimal("30")
    assert quote.total_amount != Decimal("33.33")


def test_no_rate_prices_at_zero():
    prop = Property(daily_rate=None, monthly_rent=None)

    quote = compute_price(prop, date(2024, 3, 1), date(2024, 3, 8))

    assert quote.nights == 7
    assert quote.total_amount == Decimal("0")


def test_created_booking_stores_rounded_total(make_property, make_booking):
    prop = make_property(daily_rate=None, monthly_rent=Decimal("1000"))

    booking = make_booking(date(2024, 3, 1), date(2024, 3, 2), property_id=prop.id)

    assert booking.total_amount == Decimal("33.33")
    assert booking.base_rate == Decimal("33.33")
    assert booking.number_of_nights == 1
    assert booking.amount_due == Decimal("33.33")


def test_agreed_total_overrides_computed_price(make_booking):
    booking = make_booking(date(2024, 3, 1), date(2024, 3, 4), total_amount=Decimal("2000"))

    assert booking.total_amount == Decimal("2000.00")
    assert booking.base_rate == Decimal("800.00")


def test_quote_through_service(booking_service, rental):
    quote = booking_service.quote(ORG_ID, rental.id, date(2024, 3, 1), date(2024, 3, 4))

    assert (quote.nights, quote.total_amount) == (3, Decimal("2400"))


@pytest.mark.parametrize(
    "check_in, check_out, nights",
    [
        (date(2024, 2, 28), date(2024, 3, 1), 2),
        (date(2023, 12, 31), date(2024, 1, 1), 1),
        (date(2024, 3, 1), date(2024, 4, 1), 31),
    ],
)
def test_nights_across_month_boundaries(check_in, check_out, nights):
    prop = Property(daily_rate=Decimal("100"), monthly_rent=None)

    assert compute_price(prop, check_in, check_out).nights == nights
