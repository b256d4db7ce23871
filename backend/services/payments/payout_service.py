"""
Driver payouts.

Once a week every wallet with a pending balance is paid out: the pending
amount moves to ``paid_amount`` and a DriverPayout records the transfer
under a shared batch id. Payouts start ``pending`` until the bank transfer
is confirmed; a failed transfer returns the amount to the wallet's pending
balance so the next batch picks it up again.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from bookings.pricing import format_price
from notifications.services import notify_on_commit
from payments.models import DriverPayout, DriverWallet
from .exceptions import PayoutError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def new_batch_id(prefix: str = "payout") -> str:
    return f"{prefix}_{timezone.now():%Y%m%d%H%M%S%f}"


def create_driver_payout(driver_id: int, batch_id: str) -> Optional[DriverPayout]:
    """
    Pay out one driver's pending balance under ``batch_id``.

    Returns None when there is nothing pending or the driver already has a
    payout in this batch.
    """
    try:
        with transaction.atomic():
            wallet = DriverWallet.objects.select_for_update().filter(driver_id=driver_id).first()
            if wallet is None or wallet.pending_amount <= ZERO:
                return None

            amount = wallet.pending_amount
            payout = DriverPayout.objects.create(driver_id=driver_id, batch_id=batch_id, amount=amount)

            wallet.paid_amount += amount
            wallet.pending_amount = ZERO
            wallet.last_payout_at = timezone.now()
            wallet.save(update_fields=['paid_amount', 'pending_amount', 'last_payout_at', 'updated_at'])

            notify_on_commit(
                driver_id,
                "Weekly Payout",
                f"A payout of {format_price(amount)} is on its way to your bank account.",
                notification_type="payment",
                data={"payout_id": payout.id, "batch_id": batch_id, "amount": str(amount)},
            )
    except IntegrityError:
        logger.warning("Driver %s already has a payout in batch %s", driver_id, batch_id)
        return None

    logger.info("Payout %s: %s to driver %s (batch %s)", payout.id, amount, driver_id, batch_id)
    return payout


def process_weekly_payouts(batch_id: Optional[str] = None) -> Dict[str, Any]:
    """Pay out every wallet with a pending balance. Returns a batch summary."""
    batch_id = batch_id or new_batch_id()
    driver_ids = list(
        DriverWallet.objects.filter(pending_amount__gt=ZERO).values_list('driver_id', flat=True)
    )

    created = 0
    total = ZERO
    for driver_id in driver_ids:
        try:
            payout = create_driver_payout(driver_id, batch_id)
        except Exception:
            # One broken wallet must not hold up the rest of the batch
            logger.exception("Payout of driver %s failed in batch %s", driver_id, batch_id)
            continue
        if payout is not None:
            created += 1
            total += payout.amount

    logger.info("Weekly payout batch %s: %d payouts, %s total", batch_id, created, total)
    return {"batch_id": batch_id, "payouts": created, "total_amount": str(total)}


def trigger_manual_payout(driver_id: Optional[int] = None) -> Dict[str, Any]:
    """Run a payout outside the weekly schedule, for one driver or all of them."""
    if driver_id is None:
        return process_weekly_payouts(new_batch_id("manual_payout"))

    batch_id = new_batch_id("manual_payout")
    payout = create_driver_payout(driver_id, batch_id)
    if payout is None:
        logger.info("No pending amount for driver %s", driver_id)
        return {"batch_id": batch_id, "payouts": 0, "total_amount": str(ZERO)}
    return {"batch_id": batch_id, "payouts": 1, "total_amount": str(payout.amount)}


@transaction.atomic
def settle_payout(payout_id: int, succeeded: bool, reason: str = "") -> DriverPayout:
    """
    Record the bank's answer for a pending payout.

    A failed transfer moves the amount back from paid to pending.
    """
    payout = DriverPayout.objects.select_for_update().filter(id=payout_id).first()
    if payout is None:
        raise PayoutError("Payout not found")
    if payout.status != 'pending':
        raise PayoutError(f"Payout is already {payout.status}")

    payout.processed_at = timezone.now()
    if succeeded:
        payout.status = 'completed'
    else:
        payout.status = 'failed'
        payout.failure_reason = reason
        wallet = DriverWallet.objects.select_for_update().get(driver_id=payout.driver_id)
        wallet.paid_amount -= payout.amount
        wallet.pending_amount += payout.amount
        wallet.save(update_fields=['paid_amount', 'pending_amount', 'updated_at'])
        notify_on_commit(
            payout.driver_id,
            "Payout Failed",
            f"Your payout of {format_price(payout.amount)} could not be transferred. "
            "It will be retried with the next payout.",
            notification_type="payment",
            data={"payout_id": payout.id, "reason": reason},
        )
    payout.save(update_fields=['status', 'processed_at', 'failure_reason'])

    logger.info("Payout %s settled as %s", payout.id, payout.status)
    return payout


def get_driver_payout_history(driver_id: int, limit: int = 10) -> List[DriverPayout]:
    return list(DriverPayout.objects.filter(driver_id=driver_id)[:limit])


def get_payout_statistics() -> Dict[str, str]:
    """Completed payouts this week and month, plus what is pending or failed."""
    midnight = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = midnight - timedelta(days=midnight.weekday())
    month_start = midnight.replace(day=1)

    completed = DriverPayout.objects.filter(status='completed')

    def total(queryset):
        return queryset.aggregate(total=Sum('amount'))['total'] or ZERO

    return {
        "paid_this_week": str(total(completed.filter(processed_at__gte=week_start))),
        "paid_this_month": str(total(completed.filter(processed_at__gte=month_start))),
        "pending_payouts": str(total(DriverPayout.objects.filter(status='pending'))),
        "failed_payouts": str(total(DriverPayout.objects.filter(status='failed'))),
    }
