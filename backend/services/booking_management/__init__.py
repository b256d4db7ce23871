"""
Booking management service.

This module handles:
    - Quoting and creating bookings (route checks, seats, pricing)
    - Status transitions and per-date cancellations
    - Extending a booking over extra days
    - Completing bookings whose period has ended
"""

from .exceptions import (
    BookingNotFoundError,
    BookingValidationError,
    InvalidBookingTransitionError,
    DriverUnavailableError,
    RouteNotCompatibleError,
    RouteConfirmationRequiredError,
)
from .booking_service import (
    BookingQuote,
    quote_booking,
    create_booking,
    update_booking_status,
    extend_booking,
    cancel_rides_for_date,
    complete_finished_bookings,
    get_parent_bookings,
    get_driver_bookings,
)

__all__ = [
    "BookingNotFoundError",
    "BookingValidationError",
    "InvalidBookingTransitionError",
    "DriverUnavailableError",
    "RouteNotCompatibleError",
    "RouteConfirmationRequiredError",
    "BookingQuote",
    "quote_booking",
    "create_booking",
    "update_booking_status",
    "extend_booking",
    "cancel_rides_for_date",
    "complete_finished_bookings",
    "get_parent_bookings",
    "get_driver_bookings",
]
