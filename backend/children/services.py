import logging

from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from services.payments import close_cancelled_payments

logger = logging.getLogger(__name__)


@transaction.atomic
def delete_child(child):
    """
    Delete a child together with their open bookings.

    Pending/confirmed bookings are cancelled (kept for history) and their
    payment plans closed unless already completed.
    """
    bookings = Booking.objects.filter(child=child, status__in=Booking.ACTIVE_STATUSES)
    booking_ids = list(bookings.values_list('id', flat=True))

    cancelled = bookings.update(
        status='cancelled',
        cancelled_at=timezone.now(),
        cancellation_reason='Child profile deleted',
    )
    failed = close_cancelled_payments(booking_ids)

    child_id = child.id
    child.delete()

    logger.info("Deleted child %s: %s bookings cancelled, %s payments failed", child_id, cancelled, failed)
    return {"cancelled_bookings": cancelled, "failed_payments": failed}
