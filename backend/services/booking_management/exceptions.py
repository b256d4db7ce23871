"""Custom exceptions for booking management."""


class BookingNotFoundError(Exception):
    """Raised when a booking cannot be found for the requesting user."""
    pass


class BookingValidationError(Exception):
    """Raised when booking input is inconsistent (dates, child, driver)."""
    pass


class InvalidBookingTransitionError(Exception):
    """Raised when a status change breaks pending -> confirmed -> completed / cancelled."""
    pass


class DriverUnavailableError(Exception):
    """Raised when the driver is not approved, closed for booking or full."""
    pass


class RouteNotCompatibleError(Exception):
    """Raised when the driver's route is a Poor/Unknown match for the child."""
    pass


class RouteConfirmationRequiredError(Exception):
    """Raised when a Good/Fair route match was not explicitly confirmed."""

    def __init__(self, message, compatibility=None):
        super().__init__(message)
        self.compatibility = compatibility
