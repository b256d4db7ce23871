"""
Trip pricing for school ride bookings.

Pure functions, no database access:
    - count_school_days: weekdays in an inclusive date range
    - calculate_driver_availability_percentage: free seats as 0-100
    - calculate_ride_price: distance x days x rate, plus an availability adjustment
    - calculate_extension_price: pro-rate an existing booking over extra days
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

from common.conf import get_setting

WHOLE = Decimal("1")
CENTS = Decimal("0.01")


@dataclass
class PricingCalculation:
    base_price: Decimal
    total_distance: float
    number_of_days: int
    driver_availability: int
    availability_bonus: Decimal
    total_price: Decimal
    breakdown: Dict[str, str] = field(default_factory=dict)


def _round_whole(amount: Decimal) -> Decimal:
    return amount.quantize(WHOLE, rounding=ROUND_HALF_UP)


def format_price(amount) -> str:
    """Format an amount in rupees, e.g. ``Rs.12,500``."""
    amount = Decimal(str(amount))
    if amount == amount.to_integral_value():
        return f"Rs.{int(amount):,}"
    return f"Rs.{amount.quantize(CENTS, rounding=ROUND_HALF_UP):,}"


def count_school_days(start: date, end: date) -> int:
    """Count Monday-Friday dates between start and end, both inclusive."""
    if end < start:
        return 0

    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def calculate_driver_availability_percentage(total_seats: int, booked_seats: int) -> int:
    """Free seats as a whole percentage, clamped to 0-100."""
    if not total_seats or total_seats <= 0:
        return 0
    availability = (total_seats - booked_seats) / total_seats * 100
    return max(0, min(100, int(Decimal(str(availability)).quantize(WHOLE, rounding=ROUND_HALF_UP))))


def calculate_ride_price(
    total_distance_km: float,
    number_of_days: int,
    driver_availability: int,
) -> PricingCalculation:
    """
    Price a booking.

    base  = rate/km x distance x days
    bonus = base x multiplier x (100 - availability) / 100

    Fewer free seats means a larger bonus, so the price never drops as a
    driver fills up. Amounts are rounded to whole rupees.
    """
    rate = Decimal(str(get_setting("BASE_RATE_PER_KM")))
    multiplier = Decimal(str(get_setting("AVAILABILITY_MULTIPLIER")))

    distance = Decimal(str(round(float(total_distance_km), 2)))
    availability = max(0, min(100, int(driver_availability)))
    factor = Decimal(100 - availability) / Decimal(100)

    base_price = rate * distance * number_of_days
    bonus = base_price * multiplier * factor
    total = base_price + bonus

    return PricingCalculation(
        base_price=_round_whole(base_price),
        total_distance=float(distance),
        number_of_days=number_of_days,
        driver_availability=availability,
        availability_bonus=_round_whole(bonus),
        total_price=_round_whole(total),
        breakdown={
            "base_calculation": (
                f"Rs.{rate} x {distance}km x {number_of_days} days = {format_price(_round_whole(base_price))}"
            ),
            "availability_adjustment": (
                f"Availability adjustment ({int(factor * 100)}%): {format_price(_round_whole(bonus))}"
            ),
            "final_total": f"Total: {format_price(_round_whole(total))}",
        },
    )


def calculate_extension_price(
    total_price,
    recurring_days: Optional[int],
    additional_days: int,
    fallback_distance_km: Optional[float] = None,
) -> Decimal:
    """
    Price extra days at the booking's existing daily rate.

    The daily rate is total_price / recurring_days. Bookings without a day
    count use the whole price as the daily rate; bookings without a price
    fall back to the per-km rate over ``fallback_distance_km``.
    """
    total_price = Decimal(str(total_price or 0))

    if recurring_days:
        daily_rate = total_price / Decimal(recurring_days)
    elif total_price > 0:
        daily_rate = total_price
    else:
        rate = Decimal(str(get_setting("BASE_RATE_PER_KM")))
        daily_rate = rate * Decimal(str(round(float(fallback_distance_km or 0), 2)))

    return (daily_rate * additional_days).quantize(CENTS, rounding=ROUND_HALF_UP)
