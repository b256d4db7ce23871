"""Custom exceptions for payment processing."""


class PaymentNotFoundError(Exception):
    """Raised when a payment transaction cannot be found."""
    pass


class PaymentValidationError(Exception):
    """Raised when a payment amount or type is not acceptable."""
    pass


class PaymentGatewayError(Exception):
    """Raised when the gateway declines or cannot be reached."""
    pass


class PayoutError(Exception):
    """Raised when a driver payout cannot be settled."""
    pass
