"""
Driver ratings and parents' trusted drivers.

Parents rate a driver 1-5 once per booking, after the booking is confirmed.
Averages are rounded half-up to one decimal. A parent can also keep a
trusted list: ``priority`` drivers rank above ``preferred`` ones in that
parent's driver listing.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count

from bookings.models import Booking
from drivers.models import DriverProfile, DriverRating, TrustedDriver
from .exceptions import RatingValidationError, TrustedDriverError

logger = logging.getLogger(__name__)

RATEABLE_STATUSES = ('confirmed', 'completed')
RECOMMENDED_MIN_RATING = 4.0


def round_rating(value) -> Optional[float]:
    if value is None:
        return None
    return float(Decimal(str(value)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


# ---------------------- Ratings ----------------------

def rate_driver(parent, driver_id: int, booking_id: int, rating: int, comment: str = "") -> DriverRating:
    """Rate a driver on one of the parent's confirmed or completed bookings with them."""
    if not 1 <= int(rating) <= 5:
        raise RatingValidationError("Rating must be between 1 and 5")

    booking = Booking.objects.filter(id=booking_id, parent=parent).first()
    if booking is None:
        raise RatingValidationError("Booking not found")
    if booking.driver_id != driver_id:
        raise RatingValidationError("Booking is with a different driver")
    if booking.status not in RATEABLE_STATUSES:
        raise RatingValidationError("Only confirmed or completed bookings can be rated")

    try:
        with transaction.atomic():
            driver_rating = DriverRating.objects.create(
                parent=parent,
                driver_id=driver_id,
                booking=booking,
                rating=int(rating),
                comment=comment,
            )
    except IntegrityError:
        raise RatingValidationError("This booking has already been rated")

    logger.info("Parent %s rated driver %s %s/5", parent.id, driver_id, rating)
    return driver_rating


def get_rating_summaries(driver_ids: Iterable[int]) -> Dict[int, Dict]:
    """Average and count per driver, for drivers with at least one rating."""
    rows = (
        DriverRating.objects.filter(driver_id__in=list(driver_ids))
        .values('driver_id')
        .annotate(average=Avg('rating'), count=Count('id'))
    )
    return {
        row['driver_id']: {"average_rating": round_rating(row['average']), "rating_count": row['count']}
        for row in rows
    }


def get_rating_summary(driver_id: int) -> Dict:
    return get_rating_summaries([driver_id]).get(
        driver_id, {"average_rating": None, "rating_count": 0}
    )


# ---------------------- Trusted Drivers ----------------------

def set_trusted_driver(parent, driver_id: int, is_preferred: bool = True, is_priority: bool = False,
                       notes: str = "") -> TrustedDriver:
    """Add or update a driver on the parent's trusted list."""
    if not DriverProfile.objects.filter(user_id=driver_id, status='approved').exists():
        raise TrustedDriverError("Only approved drivers can be trusted")

    trusted, created = TrustedDriver.objects.update_or_create(
        parent=parent,
        driver_id=driver_id,
        defaults={"is_preferred": is_preferred, "is_priority": is_priority, "notes": notes},
    )
    logger.info("Parent %s %s trusted driver %s", parent.id, "added" if created else "updated", driver_id)
    return trusted


def remove_trusted_driver(parent, driver_id: int) -> bool:
    deleted, _ = TrustedDriver.objects.filter(parent=parent, driver_id=driver_id).delete()
    return bool(deleted)


def get_trusted_drivers(parent) -> List[TrustedDriver]:
    return list(TrustedDriver.objects.filter(parent=parent).select_related('driver__driver_profile'))


def get_trust_levels(parent_id: Optional[int]) -> Dict[int, str]:
    """driver_id -> 'priority' or 'preferred' for one parent."""
    if parent_id is None:
        return {}
    levels = {}
    for row in TrustedDriver.objects.filter(parent_id=parent_id).values('driver_id', 'is_priority', 'is_preferred'):
        if row['is_priority']:
            levels[row['driver_id']] = 'priority'
        elif row['is_preferred']:
            levels[row['driver_id']] = 'preferred'
    return levels
