"""
Payment service.

This module handles:
    - Creating the upfront/balance plan for a booking
    - Charging installments through the gateway and crediting driver wallets
    - Balance reminders and suspension of overdue plans
    - Weekly driver payouts out of the wallet's pending balance
"""

from .exceptions import PaymentNotFoundError, PaymentValidationError, PaymentGatewayError, PayoutError
from .payment_service import (
    PaymentResult,
    create_payment_transaction,
    extend_payment_transaction,
    process_payment,
    close_cancelled_payments,
    send_balance_reminders,
    suspend_overdue_payments,
    get_payment_dashboard,
)
from .payout_service import (
    create_driver_payout,
    process_weekly_payouts,
    trigger_manual_payout,
    settle_payout,
    get_driver_payout_history,
    get_payout_statistics,
)

__all__ = [
    "PaymentNotFoundError",
    "PaymentValidationError",
    "PaymentGatewayError",
    "PayoutError",
    "PaymentResult",
    "create_payment_transaction",
    "extend_payment_transaction",
    "process_payment",
    "close_cancelled_payments",
    "send_balance_reminders",
    "suspend_overdue_payments",
    "get_payment_dashboard",
    "create_driver_payout",
    "process_weekly_payouts",
    "trigger_manual_payout",
    "settle_payout",
    "get_driver_payout_history",
    "get_payout_statistics",
]
