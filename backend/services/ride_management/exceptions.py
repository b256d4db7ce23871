"""Custom exceptions for ride management."""


class RideNotFoundError(Exception):
    """Raised when a ride cannot be found for the requesting driver."""
    pass


class RideChildNotFoundError(Exception):
    """Raised when a child is not part of the ride."""
    pass


class RideAlreadyCompletedError(Exception):
    """Raised when attendance is updated on a completed ride."""
    pass


class InvalidAttendanceTransitionError(Exception):
    """Raised when a child status change breaks pending -> picked_up/absent -> dropped_off."""
    pass


class NoBookingsTodayError(Exception):
    """Raised when a driver starts a ride with no confirmed bookings for the day."""
    pass


class ActiveRideExistsError(Exception):
    """Raised when the driver already has a ride for the day."""
    pass


class TrackingNotActiveError(Exception):
    """Raised when a location update arrives without an active tracking session."""
    pass
