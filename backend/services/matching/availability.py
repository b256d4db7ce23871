"""
Seat availability for drivers.

Availability is derived on every call from the vehicle capacity and the
number of pending/confirmed bookings. Nothing is reserved: two bookings made
at the same moment can both succeed and push available seats below zero.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from bookings.models import Booking
from bookings.pricing import calculate_driver_availability_percentage
from drivers.models import DriverProfile

logger = logging.getLogger(__name__)


@dataclass
class DriverAvailability:
    total_seats: int
    booked_seats: int
    available_seats: int

    @property
    def has_capacity(self) -> bool:
        return self.available_seats > 0

    @property
    def percentage(self) -> int:
        return calculate_driver_availability_percentage(self.total_seats, self.booked_seats)

    def as_dict(self):
        return {
            "total_seats": self.total_seats,
            "booked_seats": self.booked_seats,
            "available_seats": self.available_seats,
            "availability_percentage": self.percentage,
        }


def count_booked_seats(driver_id: int) -> int:
    return Booking.objects.filter(
        driver_id=driver_id,
        status__in=Booking.ACTIVE_STATUSES,
    ).count()


def get_driver_availability(driver_id: int, profile: Optional[DriverProfile] = None) -> DriverAvailability:
    """
    Compute seat availability for a driver.
    
    Args:
        driver_id: Driver user ID
        profile: Already-loaded DriverProfile, to skip the lookup
    
    Returns:
        DriverAvailability (available_seats may be negative when overbooked)
    """
    if profile is None:
        profile = DriverProfile.objects.filter(user_id=driver_id).first()

    total_seats = (profile.vehicle_capacity or 0) if profile else 0
    booked_seats = count_booked_seats(driver_id)
    available = total_seats - booked_seats

    if available < 0:
        logger.warning("Driver %s is overbooked: %s booked of %s seats", driver_id, booked_seats, total_seats)

    return DriverAvailability(
        total_seats=total_seats,
        booked_seats=booked_seats,
        available_seats=available,
    )
