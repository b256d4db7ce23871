"""Celery tasks for payment and booking housekeeping."""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def send_balance_reminders_task():
    """Daily: remind parents 3 days and 1 day before the balance is due."""
    from services.payments import send_balance_reminders
    return send_balance_reminders()


@shared_task
def suspend_overdue_payments_task():
    """Daily: suspend plans whose balance due date has passed unpaid."""
    from services.payments import suspend_overdue_payments
    return suspend_overdue_payments()


@shared_task
def complete_finished_bookings_task():
    """Daily: complete confirmed bookings whose period has ended."""
    from services.booking_management import complete_finished_bookings
    return complete_finished_bookings()


@shared_task
def process_weekly_payouts_task():
    """Weekly: pay out every driver wallet's pending balance."""
    from services.payments import process_weekly_payouts
    return process_weekly_payouts()
