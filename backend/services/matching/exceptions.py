"""Custom exceptions for driver ratings and trusted drivers."""


class RatingValidationError(Exception):
    """Raised when a parent may not rate this booking, or the rating is out of range."""
    pass


class TrustedDriverError(Exception):
    """Raised when the driver cannot be added to a parent's trusted list."""
    pass
