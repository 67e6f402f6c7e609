"""
Stay pricing from property rate configuration.
"""

from datetime import date
from decimal import Decimal

from propdesk.models.property.property import Property
from propdesk.schemas.booking.booking_calendar import PriceQuote
from propdesk.utils.date_utils import nights_between
from propdesk.utils.money import ZERO, to_decimal

# Fixed month length used to derive a nightly rate from monthly rent.
DAYS_PER_MONTH = Decimal(30)


def nightly_rate(prop: Property) -> Decimal:
    """Daily rate when set, else monthly rent spread over 30 days, else zero."""
    if prop.daily_rate is not None:
        return to_decimal(prop.daily_rate)
    if prop.monthly_rent is not None:
        return to_decimal(prop.monthly_rent) / DAYS_PER_MONTH
    return ZERO


def compute_price(prop: Property, check_in_date: date, check_out_date: date) -> PriceQuote:
    """
    Price a stay.

    Amounts are unrounded; callers quantize when persisting.

    Args:
        prop: Property carrying daily_rate and/or monthly_rent
        check_in_date: First night
        check_out_date: Departure day

    Returns:
        PriceQuote with nights, base rate and total
    """
    nights = nights_between(check_in_date, check_out_date)
    rate = nightly_rate(prop)
    return PriceQuote(nights=nights, base_rate=rate, total_amount=rate * nights)
