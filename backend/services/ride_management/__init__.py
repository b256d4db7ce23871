"""
Ride management service.

This module handles:
    - Starting a driver's daily ride from today's bookings
    - Per-child attendance (pickup, absence, drop-off) and ride completion
    - Live location tracking sessions
    - Emergency alerts
"""

from .exceptions import (
    RideNotFoundError,
    RideChildNotFoundError,
    RideAlreadyCompletedError,
    InvalidAttendanceTransitionError,
    NoBookingsTodayError,
    ActiveRideExistsError,
    TrackingNotActiveError,
)
from .ride_lifecycle import (
    RideResult,
    start_ride,
    update_child_status,
    complete_ride_early,
    get_active_ride,
    get_active_rides_for_parent,
    get_driver_ride_history,
    recalculate_counts,
)
from .tracking import LocationTracker
from .emergency import trigger_emergency_alert, resolve_emergency_alert

__all__ = [
    "RideNotFoundError",
    "RideChildNotFoundError",
    "RideAlreadyCompletedError",
    "InvalidAttendanceTransitionError",
    "NoBookingsTodayError",
    "ActiveRideExistsError",
    "TrackingNotActiveError",
    "RideResult",
    "start_ride",
    "update_child_status",
    "complete_ride_early",
    "get_active_ride",
    "get_active_rides_for_parent",
    "get_driver_ride_history",
    "recalculate_counts",
    "LocationTracker",
    "trigger_emergency_alert",
    "resolve_emergency_alert",
]
