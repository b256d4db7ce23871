"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP/WebSocket layer.

Modules:
    - matching: Seat availability, route compatibility and driver listings
    - payments: Upfront/balance payment plans, charges and reminders
    - booking_management: Booking quotes, lifecycle and extensions
    - ride_management: Daily rides, attendance, tracking and emergencies
"""

# Expose commonly used functions at package level
from .matching import (
    get_driver_availability,
    classify_route_compatibility,
    list_available_drivers,
)
from .payments import (
    create_payment_transaction,
    process_payment,
)
from .booking_management import (
    create_booking,
    update_booking_status,
    extend_booking,
)
from .ride_management import (
    start_ride,
    update_child_status,
    complete_ride_early,
    trigger_emergency_alert,
)

__all__ = [
    # Matching
    "get_driver_availability",
    "classify_route_compatibility",
    "list_available_drivers",
    # Payments
    "create_payment_transaction",
    "process_payment",
    # Bookings
    "create_booking",
    "update_booking_status",
    "extend_booking",
    # Rides
    "start_ride",
    "update_child_status",
    "complete_ride_early",
    "trigger_emergency_alert",
]
