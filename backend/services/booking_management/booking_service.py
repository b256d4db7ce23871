"""
Core booking operations.

Bookings move pending -> confirmed -> completed, or to cancelled from
either open state. A recurring booking can also skip single dates through
its cancelled_dates list without being cancelled as a whole.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from bookings.models import Booking
from bookings.pricing import (
    PricingCalculation,
    calculate_extension_price,
    calculate_ride_price,
    count_school_days,
    format_price,
)
from children.models import Child
from common.utils.geo import distance_between, round_km
from drivers.models import DriverProfile
from notifications.services import (
    notify_on_commit,
    send_booking_notification,
    send_ride_cancellation_notification,
)
from services.matching import get_driver_availability, classify_route_compatibility
from services.matching.availability import DriverAvailability
from services.matching.route_compatibility import RouteCompatibility, is_listable_route
from services.payments import close_cancelled_payments, create_payment_transaction, extend_payment_transaction
from .exceptions import (
    BookingNotFoundError,
    BookingValidationError,
    InvalidBookingTransitionError,
    DriverUnavailableError,
    RouteNotCompatibleError,
    RouteConfirmationRequiredError,
)

logger = logging.getLogger(__name__)


@dataclass
class BookingQuote:
    """Everything a parent sees before confirming a booking."""
    driver: DriverProfile
    compatibility: RouteCompatibility
    availability: DriverAvailability
    school_days: int
    distance_km: float
    pricing: PricingCalculation

    def as_dict(self) -> Dict[str, Any]:
        return {
            "driver_id": self.driver.user_id,
            "route": self.compatibility.as_dict(),
            "availability": self.availability.as_dict(),
            "school_days": self.school_days,
            "distance_km": self.distance_km,
            "base_price": str(self.pricing.base_price),
            "availability_bonus": str(self.pricing.availability_bonus),
            "total_price": str(self.pricing.total_price),
            "breakdown": self.pricing.breakdown,
        }


# ===================== Lookups =====================

def get_parent_bookings(parent, status: Optional[str] = None):
    bookings = Booking.objects.filter(parent=parent).select_related('child', 'driver__driver_profile')
    if status:
        bookings = bookings.filter(status=status)
    return bookings


def get_driver_bookings(driver, status: Optional[str] = None):
    bookings = Booking.objects.filter(driver=driver).select_related('child', 'parent')
    if status:
        bookings = bookings.filter(status=status)
    return bookings


def _get_open_driver(driver_id: int) -> DriverProfile:
    profile = DriverProfile.objects.select_related('user').filter(user_id=driver_id).first()
    if profile is None:
        raise DriverUnavailableError("Driver not found")
    if profile.status != 'approved' or not profile.user.is_active:
        raise DriverUnavailableError("Driver is not approved")
    if not profile.booking_open:
        raise DriverUnavailableError("Driver is not accepting bookings")
    return profile


# ===================== Quote & Create =====================

def quote_booking(child: Child, driver_id: int, ride_date: date, end_date: Optional[date] = None) -> BookingQuote:
    """
    Price a prospective booking without saving anything.

    Args:
        child: Child to be driven
        driver_id: Driver user ID
        ride_date: First ride date
        end_date: Last ride date for a recurring booking

    Returns:
        BookingQuote

    Raises:
        BookingValidationError: If the dates contain no school day
        DriverUnavailableError: If the driver cannot take bookings
    """
    if end_date is not None and end_date < ride_date:
        raise BookingValidationError("End date cannot be before the start date")

    school_days = count_school_days(ride_date, end_date or ride_date)
    if school_days == 0:
        raise BookingValidationError("The selected dates contain no school days")

    profile = _get_open_driver(driver_id)
    availability = get_driver_availability(driver_id, profile=profile)
    compatibility = classify_route_compatibility(
        child.pickup_location, child.school_location, profile.route_start, profile.route_end,
    )

    distance_km = round_km(distance_between(child.pickup_location, child.school_location))
    pricing = calculate_ride_price(distance_km, school_days, availability.percentage)

    return BookingQuote(
        driver=profile,
        compatibility=compatibility,
        availability=availability,
        school_days=school_days,
        distance_km=distance_km,
        pricing=pricing,
    )


def create_booking(
    parent,
    child_id: int,
    driver_id: int,
    ride_date: date,
    end_date: Optional[date] = None,
    daily_time=None,
    notes: str = "",
    confirm_route_warning: bool = False,
) -> Booking:
    """
    Create a pending booking with its payment plan.

    Seats are counted, not reserved: concurrent bookings for the last seat
    can both succeed.

    Raises:
        BookingValidationError: Unknown child or bad dates
        DriverUnavailableError: Driver closed, unapproved or full
        RouteNotCompatibleError: Poor/Unknown route match
        RouteConfirmationRequiredError: Good/Fair match without confirmation
    """
    child = Child.objects.filter(id=child_id, parent=parent).first()
    if child is None:
        raise BookingValidationError("Child not found")
    if ride_date < timezone.localdate():
        raise BookingValidationError("Bookings cannot start in the past")

    quote = quote_booking(child, driver_id, ride_date, end_date)

    if not quote.availability.has_capacity:
        raise DriverUnavailableError("Driver has no available seats")

    profile = quote.driver
    compatibility = quote.compatibility
    if not is_listable_route(compatibility, child.pickup_location, child.school_location,
                             profile.route_start, profile.route_end):
        raise RouteNotCompatibleError(f"Driver route is not compatible ({compatibility.quality})")
    if compatibility.requires_confirmation and not confirm_route_warning:
        raise RouteConfirmationRequiredError(
            f"Route match is {compatibility.quality}; confirm to continue",
            compatibility=compatibility,
        )

    with transaction.atomic():
        booking = Booking.objects.create(
            parent=parent,
            driver_id=driver_id,
            child=child,
            pickup_latitude=child.pickup_latitude,
            pickup_longitude=child.pickup_longitude,
            pickup_address=child.pickup_address,
            dropoff_latitude=child.school_latitude,
            dropoff_longitude=child.school_longitude,
            dropoff_address=child.school_address or child.school_name,
            ride_date=ride_date,
            end_date=end_date,
            recurring_days=quote.school_days,
            daily_time=daily_time,
            total_price=quote.pricing.total_price,
            route_quality=compatibility.quality,
            notes=notes,
            status='pending',
        )
        create_payment_transaction(booking)

        notify_on_commit(
            driver_id,
            "New Booking Request",
            f"{parent.get_full_name() or parent.username} requested rides for {child.full_name} "
            f"({quote.school_days} school days, {format_price(booking.total_price)}).",
            notification_type="booking",
            sender_id=parent.id,
            data={"booking_id": booking.id, "status": booking.status},
        )

    logger.info(
        "Booking %s created: parent=%s driver=%s child=%s days=%s total=%s route=%s",
        booking.id, parent.id, driver_id, child.id, quote.school_days, booking.total_price, compatibility.quality,
    )
    return booking


# ===================== Status =====================

def _get_booking_for(user, booking_id: int) -> Booking:
    booking = Booking.objects.filter(id=booking_id).filter(Q(parent=user) | Q(driver=user)).first()
    if booking is None:
        raise BookingNotFoundError("Booking not found")
    return booking


@transaction.atomic
def update_booking_status(user, booking_id: int, new_status: str, reason: str = "") -> Booking:
    """
    Move a booking along its lifecycle.

    Drivers confirm, reject (cancel) and complete; parents may only cancel.

    Raises:
        BookingNotFoundError: If the user is not part of the booking
        InvalidBookingTransitionError: If the transition is not allowed
    """
    booking = _get_booking_for(user, booking_id)
    is_driver = booking.driver_id == user.id

    if not is_driver and new_status != 'cancelled':
        raise InvalidBookingTransitionError("Parents can only cancel a booking")
    if not booking.can_transition_to(new_status):
        raise InvalidBookingTransitionError(f"Cannot change booking from {booking.status} to {new_status}")

    now = timezone.now()
    booking.status = new_status
    if new_status == 'confirmed':
        booking.confirmed_at = now
    elif new_status == 'completed':
        booking.completed_at = now
    elif new_status == 'cancelled':
        booking.cancelled_at = now
        booking.cancellation_reason = reason
        close_cancelled_payments([booking.id])
    booking.save()

    recipient_id = booking.parent_id if is_driver else booking.driver_id
    title = {
        'confirmed': "Booking Confirmed",
        'completed': "Booking Completed",
        'cancelled': "Booking Cancelled",
    }[new_status]
    body = f"Booking #{booking.id} is now {new_status}."
    if reason:
        body += f" Reason: {reason}"
    transaction.on_commit(lambda: send_booking_notification(recipient_id, booking, title, body, sender_id=user.id))

    logger.info("Booking %s -> %s by user %s", booking.id, new_status, user.id)
    return booking


# ===================== Extension =====================

@transaction.atomic
def extend_booking(parent, booking_id: int, additional_days: int):
    """
    Extend a booking by ``additional_days`` at its existing daily rate.

    Returns:
        (booking, extension_price)

    Raises:
        BookingNotFoundError: If the parent does not own the booking
        BookingValidationError: If the booking cannot be extended
    """
    booking = Booking.objects.select_for_update().filter(id=booking_id, parent=parent).first()
    if booking is None:
        raise BookingNotFoundError("Booking not found")
    if booking.status not in Booking.ACTIVE_STATUSES:
        raise BookingValidationError(f"A {booking.status} booking cannot be extended")
    if additional_days < 1:
        raise BookingValidationError("Extend by at least one day")

    fallback_distance = None
    if booking.pickup_location and booking.dropoff_location:
        fallback_distance = distance_between(booking.pickup_location, booking.dropoff_location)

    extension_price = calculate_extension_price(
        booking.total_price, booking.recurring_days, additional_days, fallback_distance,
    )

    booking.end_date = booking.period_end + timedelta(days=additional_days)
    booking.recurring_days += additional_days
    booking.total_price = Decimal(booking.total_price) + extension_price
    booking.save(update_fields=['end_date', 'recurring_days', 'total_price', 'updated_at'])

    extend_payment_transaction(booking, extension_price)

    notify_on_commit(
        booking.driver_id,
        "Booking Extended",
        f"Booking #{booking.id} was extended by {additional_days} days until {booking.end_date.isoformat()}.",
        notification_type="booking",
        sender_id=parent.id,
        data={"booking_id": booking.id, "additional_days": additional_days},
    )

    logger.info("Booking %s extended by %s days for %s", booking.id, additional_days, extension_price)
    return booking, extension_price


# ===================== Per-date Cancellation =====================

@transaction.atomic
def cancel_rides_for_date(driver, ride_date: date, reason: str = "") -> List[Booking]:
    """
    Skip one day of every confirmed booking the driver has on ``ride_date``.

    Returns:
        Bookings that had a ride on that date
    """
    affected = []
    bookings = Booking.objects.select_for_update().filter(
        driver=driver,
        status='confirmed',
        ride_date__lte=ride_date,
    ).filter(Q(end_date__gte=ride_date) | Q(end_date__isnull=True, ride_date=ride_date))

    for booking in bookings:
        if not booking.is_scheduled_on(ride_date):
            continue

        booking.cancelled_dates = [*(booking.cancelled_dates or []), ride_date.isoformat()]
        booking.save(update_fields=['cancelled_dates', 'updated_at'])
        affected.append(booking)

        parent_id = booking.parent_id
        transaction.on_commit(
            lambda parent_id=parent_id: send_ride_cancellation_notification(parent_id, driver.id, ride_date, reason)
        )

    logger.info("Driver %s cancelled %s rides on %s", driver.id, len(affected), ride_date)
    return affected


# ===================== Scheduled Jobs =====================

def complete_finished_bookings(today: Optional[date] = None) -> int:
    """Mark confirmed bookings whose period has ended as completed."""
    today = today or timezone.localdate()
    finished = Booking.objects.filter(status='confirmed').filter(
        Q(end_date__lt=today) | Q(end_date__isnull=True, ride_date__lt=today)
    )
    count = finished.update(status='completed', completed_at=timezone.now())
    if count:
        logger.info("Completed %d finished bookings", count)
    return count
