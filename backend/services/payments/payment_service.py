"""
Payment plan operations.

Every booking has one PaymentTransaction: an upfront installment (25%) and a
balance installment due two days before the booking period ends. Each
successful charge is split into gateway fee, platform commission and driver
earning; the driver's share is credited to their wallet after the charge
commits.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from bookings.pricing import format_price
from notifications.services import send_payment_notification
from payments.calculations import (
    calculate_balance_due_date,
    calculate_payment_breakdown,
    calculate_payment_split,
    derive_payment_status,
)
from payments.gateway import get_gateway
from payments.models import DriverWallet, PaymentCharge, PaymentTransaction
from common.conf import get_setting
from .exceptions import PaymentGatewayError, PaymentValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
PAYABLE_STATUSES = ("pending", "partial", "suspended")


@dataclass
class PaymentResult:
    """Result object for a successful charge."""
    transaction: PaymentTransaction
    charge: PaymentCharge
    message: str = ""


# ===================== Plan Setup =====================

def create_payment_transaction(booking) -> PaymentTransaction:
    """Create the upfront/balance plan for a booking."""
    breakdown = calculate_payment_breakdown(booking.total_price, booking.period_end)

    payment = PaymentTransaction.objects.create(
        booking=booking,
        parent_id=booking.parent_id,
        driver_id=booking.driver_id,
        total_amount=breakdown.total_amount,
        upfront_amount=breakdown.upfront_amount,
        balance_amount=breakdown.balance_amount,
        balance_due_date=breakdown.balance_due_date,
        status='pending',
    )
    logger.info(
        "Payment plan %s for booking %s: total=%s upfront=%s due=%s",
        payment.id, booking.id, breakdown.total_amount, breakdown.upfront_amount, breakdown.balance_due_date,
    )
    return payment


def extend_payment_transaction(booking, additional_amount) -> Optional[PaymentTransaction]:
    """
    Grow a booking's plan after an extension.

    The extra amount lands on the balance installment and the due date moves
    with the new period end. A completed plan reopens as partial.
    """
    payment = PaymentTransaction.objects.select_for_update().filter(booking=booking).first()
    if payment is None:
        logger.warning("Booking %s has no payment plan to extend", booking.id)
        return None

    additional_amount = Decimal(str(additional_amount))
    payment.total_amount += additional_amount
    payment.balance_amount += additional_amount
    payment.balance_due_date = calculate_balance_due_date(booking.period_end)
    payment.reminder_three_days_sent = False
    payment.reminder_one_day_sent = False

    if payment.status in ('pending', 'partial', 'completed'):
        payment.status = derive_payment_status(payment.total_amount, payment.upfront_paid, payment.balance_paid)

    payment.save()
    return payment


# ===================== Charges =====================

def validate_payment(payment: PaymentTransaction, amount: Decimal, payment_type: str):
    """
    Check a charge against the current state of its plan.

    Raises:
        PaymentValidationError: with a message fit for the user
    """
    gateway_config = get_setting("PAYMENT_GATEWAY")
    minimum = Decimal(str(gateway_config["MINIMUM_AMOUNT"]))
    maximum = Decimal(str(gateway_config["MAXIMUM_AMOUNT"]))

    if payment.status not in PAYABLE_STATUSES:
        raise PaymentValidationError(f"Payment is {payment.status}; no further charges accepted")
    if payment.booking.status == 'cancelled':
        raise PaymentValidationError("Booking is cancelled; no further charges accepted")
    if amount <= ZERO:
        raise PaymentValidationError("Amount must be greater than zero")

    remaining = payment.remaining_amount
    if amount > remaining:
        raise PaymentValidationError(f"Amount exceeds remaining balance of {format_price(remaining)}")

    # The gateway floor does not apply to a final installment smaller than it
    if amount < minimum and amount != remaining:
        raise PaymentValidationError(f"Minimum payment amount is {format_price(minimum)}")
    if amount > maximum:
        raise PaymentValidationError(f"Maximum payment amount is {format_price(maximum)}")

    if payment_type == 'upfront':
        if payment.upfront_paid > ZERO:
            raise PaymentValidationError("Upfront payment already made")
        required = min(payment.upfront_amount, remaining)
        if amount < required:
            raise PaymentValidationError(f"Minimum upfront payment required: {format_price(required)}")
    elif payment_type == 'balance':
        if payment.upfront_paid <= ZERO:
            raise PaymentValidationError("Upfront payment must be made first")
    else:
        raise PaymentValidationError(f"Unknown payment type: {payment_type}")


def process_payment(
    payment: PaymentTransaction,
    amount,
    payment_type: str,
    customer: Optional[Dict[str, Any]] = None,
) -> PaymentResult:
    """
    Charge one installment through the gateway.

    The plan row stays locked from validation until the charge is recorded,
    so concurrent charges on one plan are validated one after the other
    against fresh amounts. The passed ``payment`` may be stale.

    Args:
        payment: PaymentTransaction being paid
        amount: Amount to charge
        payment_type: 'upfront' or 'balance'
        customer: Name/email/phone passed to the gateway

    Returns:
        PaymentResult with the updated transaction and the charge record

    Raises:
        PaymentValidationError: If the amount or type is not acceptable
        PaymentGatewayError: If the gateway declines or is unreachable
    """
    amount = Decimal(str(amount))
    reference = f"booking-{payment.booking_id}-{payment_type}"

    with transaction.atomic():
        payment = (
            PaymentTransaction.objects.select_for_update()
            .select_related('booking')
            .get(id=payment.id)
        )
        validate_payment(payment, amount, payment_type)

        response = get_gateway().charge(amount, customer or {}, reference)
        if not response.success:
            charge = PaymentCharge.objects.create(
                transaction=payment,
                amount=amount,
                payment_type=payment_type,
                status='failed',
                message=response.message,
            )
        else:
            split = calculate_payment_split(amount)
            now = timezone.now()

            if payment_type == 'upfront':
                payment.upfront_paid += amount
                payment.upfront_paid_at = now
            else:
                payment.balance_paid += amount
                payment.balance_paid_at = now

            payment.payhere_fee += split.payhere_fee
            payment.system_commission += split.system_commission
            payment.driver_earning += split.driver_earning
            payment.status = derive_payment_status(payment.total_amount, payment.upfront_paid, payment.balance_paid)
            payment.save()

            charge = PaymentCharge.objects.create(
                transaction=payment,
                amount=amount,
                payment_type=payment_type,
                status='completed',
                gateway_transaction_id=response.transaction_id,
                message=response.message,
                payhere_fee=split.payhere_fee,
                system_commission=split.system_commission,
                driver_earning=split.driver_earning,
            )
            transaction.on_commit(lambda: _after_charge(payment, charge))

    if not response.success:
        logger.warning("Charge for payment %s declined: %s", payment.id, response.message)
        raise PaymentGatewayError(response.message or "Payment failed")

    logger.info("Payment %s: %s %s charged (%s)", payment.id, payment_type, amount, response.transaction_id)
    return PaymentResult(transaction=payment, charge=charge, message=response.message)


def close_cancelled_payments(booking_ids) -> int:
    """
    Stop billing for cancelled bookings.

    Every plan that is not completed is marked failed, so no reminder,
    suspension or charge touches it again. Returns the number closed.
    """
    closed = PaymentTransaction.objects.filter(
        booking_id__in=list(booking_ids),
    ).exclude(status__in=('completed', 'failed')).update(status='failed', updated_at=timezone.now())
    if closed:
        logger.info("Closed %d payment plans of cancelled bookings", closed)
    return closed


def credit_driver_wallet(driver_id: int, earning: Decimal) -> DriverWallet:
    wallet, _ = DriverWallet.objects.get_or_create(driver_id=driver_id)
    DriverWallet.objects.filter(id=wallet.id).update(
        total_earnings=F('total_earnings') + earning,
        pending_amount=F('pending_amount') + earning,
    )
    wallet.refresh_from_db()
    return wallet


def _after_charge(payment: PaymentTransaction, charge: PaymentCharge):
    """Wallet credit and notifications; failures are logged, the charge stands."""
    try:
        credit_driver_wallet(payment.driver_id, charge.driver_earning)
    except Exception:
        logger.exception("Failed to credit wallet of driver %s for charge %s", payment.driver_id, charge.id)

    send_payment_notification(
        payment.parent_id, payment,
        "Payment Received",
        f"Your {charge.payment_type} payment of {format_price(charge.amount)} was successful.",
        extra={"charge_id": charge.id, "amount": str(charge.amount)},
    )
    send_payment_notification(
        payment.driver_id, payment,
        "Payment Received",
        f"You earned {format_price(charge.driver_earning)} from booking #{payment.booking_id}.",
        extra={"charge_id": charge.id, "driver_earning": str(charge.driver_earning)},
    )


# ===================== Scheduled Jobs =====================

def send_balance_reminders(today: Optional[date] = None) -> int:
    """
    Remind parents about an unpaid balance 3 days and 1 day before it is due.

    Each reminder is sent once per plan. Returns the number sent.
    """
    today = today or timezone.localdate()
    three_day, one_day = get_setting("REMINDER_DAYS")
    sent = 0

    payments = PaymentTransaction.objects.filter(
        status='partial',
        balance_due_date__gte=today,
    ).exclude(booking__status='cancelled').select_related('booking')

    for payment in payments:
        if payment.remaining_amount <= ZERO:
            continue

        days_left = (payment.balance_due_date - today).days
        if days_left <= one_day and not payment.reminder_one_day_sent:
            flag = 'reminder_one_day_sent'
        elif one_day < days_left <= three_day and not payment.reminder_three_days_sent:
            flag = 'reminder_three_days_sent'
        else:
            continue

        setattr(payment, flag, True)
        payment.save(update_fields=[flag, 'updated_at'])

        send_payment_notification(
            payment.parent_id, payment,
            "Balance Payment Reminder",
            f"Your balance of {format_price(payment.remaining_amount)} is due on "
            f"{payment.balance_due_date.isoformat()} ({days_left} day(s) left).",
            extra={"days_left": days_left},
        )
        sent += 1

    if sent:
        logger.info("Sent %d balance reminders", sent)
    return sent


def suspend_overdue_payments(today: Optional[date] = None) -> int:
    """Suspend plans whose balance is past due and still unpaid. Returns the count."""
    today = today or timezone.localdate()
    suspended = 0

    overdue = PaymentTransaction.objects.filter(
        status__in=('pending', 'partial'),
        balance_due_date__lt=today,
    ).exclude(booking__status='cancelled')

    for payment in overdue:
        if payment.remaining_amount <= ZERO:
            continue

        payment.status = 'suspended'
        payment.save(update_fields=['status', 'updated_at'])
        suspended += 1

        send_payment_notification(
            payment.parent_id, payment,
            "Payment Overdue",
            f"Your balance of {format_price(payment.remaining_amount)} is overdue. "
            "Rides for this booking are suspended until it is paid.",
        )
        send_payment_notification(
            payment.driver_id, payment,
            "Payment Overdue",
            f"Booking #{payment.booking_id} is suspended for an overdue balance.",
        )

    if suspended:
        logger.info("Suspended %d overdue payment plans", suspended)
    return suspended


# ===================== Reporting =====================

def get_payment_dashboard() -> Dict[str, Any]:
    """Aggregate totals for the admin payment dashboard."""
    totals = PaymentTransaction.objects.aggregate(
        total_amount=Sum('total_amount'),
        upfront_collected=Sum('upfront_paid'),
        balance_collected=Sum('balance_paid'),
        payhere_fees=Sum('payhere_fee'),
        system_commission=Sum('system_commission'),
        driver_earnings=Sum('driver_earning'),
    )
    totals = {key: value or ZERO for key, value in totals.items()}
    totals['collected'] = totals['upfront_collected'] + totals['balance_collected']
    totals['outstanding'] = totals['total_amount'] - totals['collected']

    by_status = {
        row['status']: row['count']
        for row in PaymentTransaction.objects.values('status').annotate(count=Count('id'))
    }

    return {
        "totals": {key: str(value) for key, value in totals.items()},
        "by_status": by_status,
    }
