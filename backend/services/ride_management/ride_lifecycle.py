"""
Core ride lifecycle operations.

A driver starts one ride per day. The ride holds a RideChild for every
booking scheduled that day, and each child moves
pending -> picked_up -> dropped_off or pending -> absent. The ride completes
by itself once every child is dropped off or absent, or when the driver ends
it early.

Parent notifications and WebSocket snapshots are sent after the attendance
write commits; a failure there is logged and never undoes the write.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from bookings.models import Booking
from notifications.services import send_attendance_notification, send_trip_end_notification
from realtime.notifications import broadcast_ride_update
from rides.models import ActiveRide, RideChild, TrackingSession
from .exceptions import (
    RideNotFoundError,
    RideChildNotFoundError,
    RideAlreadyCompletedError,
    InvalidAttendanceTransitionError,
    NoBookingsTodayError,
    ActiveRideExistsError,
)

logger = logging.getLogger(__name__)


@dataclass
class RideResult:
    """Result object for ride operations."""
    success: bool
    ride: Optional[ActiveRide] = None
    ride_child: Optional[RideChild] = None
    message: str = ""
    ride_completed: bool = False
    extra: Optional[Dict[str, Any]] = None


# ===================== Lookups =====================

def get_active_ride(driver, day: Optional[date] = None) -> Optional[ActiveRide]:
    """The driver's in-progress ride for ``day`` (today by default)."""
    day = day or timezone.localdate()
    return ActiveRide.objects.filter(
        driver=driver, date=day, status='in_progress',
    ).prefetch_related('children').first()


def get_active_rides_for_parent(parent):
    """In-progress rides carrying at least one of the parent's children."""
    return ActiveRide.objects.filter(
        status='in_progress',
    ).filter(
        Q(children__booking__parent=parent) | Q(children__child__parent=parent)
    ).distinct().select_related('driver').prefetch_related('children')


def get_driver_ride_history(driver, limit: int = 30):
    return ActiveRide.objects.filter(driver=driver).prefetch_related('children')[:limit]


def _get_driver_ride(driver, ride_id: int, lock: bool = False) -> ActiveRide:
    rides = ActiveRide.objects.select_for_update() if lock else ActiveRide.objects
    ride = rides.filter(id=ride_id, driver=driver).first()
    if ride is None:
        raise RideNotFoundError("Ride not found")
    return ride


# ===================== Start =====================

def get_bookings_for_day(driver, day: date):
    """Confirmed bookings of this driver that have a ride on ``day``."""
    candidates = Booking.objects.filter(
        driver=driver,
        status='confirmed',
        ride_date__lte=day,
    ).filter(
        Q(end_date__gte=day) | Q(end_date__isnull=True, ride_date=day)
    ).select_related('child', 'payment').order_by('daily_time', 'id')

    bookings = []
    for booking in candidates:
        if not booking.is_scheduled_on(day):
            continue
        # Overdue plans keep their rides on hold until paid
        payment = getattr(booking, 'payment', None)
        if payment is not None and payment.status == 'suspended':
            logger.info("Skipping booking %s: payment suspended", booking.id)
            continue
        bookings.append(booking)
    return bookings


@transaction.atomic
def start_ride(driver, day: Optional[date] = None) -> RideResult:
    """
    Start the driver's ride for the day.

    Raises:
        ActiveRideExistsError: If a ride for the day already exists
        NoBookingsTodayError: If no confirmed booking has a ride today
    """
    day = day or timezone.localdate()

    if ActiveRide.objects.filter(driver=driver, date=day).exists():
        raise ActiveRideExistsError("A ride for today has already been started")

    bookings = get_bookings_for_day(driver, day)
    if not bookings:
        raise NoBookingsTodayError("No confirmed bookings for today")

    try:
        # A concurrent start for the same day hits the unique (driver, date) pair
        with transaction.atomic():
            ride = ActiveRide.objects.create(driver=driver, date=day, status='in_progress')
    except IntegrityError:
        raise ActiveRideExistsError("A ride for today has already been started")

    RideChild.objects.bulk_create([
        RideChild(
            ride=ride,
            child=booking.child,
            booking=booking,
            order=index,
            full_name=booking.child.full_name if booking.child else f"Booking #{booking.id}",
            pickup_latitude=booking.pickup_latitude,
            pickup_longitude=booking.pickup_longitude,
            pickup_address=booking.pickup_address,
            dropoff_latitude=booking.dropoff_latitude,
            dropoff_longitude=booking.dropoff_longitude,
            dropoff_address=booking.dropoff_address,
            scheduled_pickup_time=booking.daily_time.strftime("%H:%M") if booking.daily_time else "",
        )
        for index, booking in enumerate(bookings)
    ])

    recalculate_counts(ride)
    transaction.on_commit(lambda: broadcast_ride_update(ride, event="ride_started"))

    logger.info("Driver %s started ride %s with %s children", driver.id, ride.ride_key, ride.total_children)
    return RideResult(success=True, ride=ride, message=f"Ride started with {ride.total_children} children")


# ===================== Attendance =====================

def recalculate_counts(ride: ActiveRide) -> ActiveRide:
    """Refresh the aggregate counts from the ride's children."""
    statuses = list(ride.children.values_list('status', flat=True))
    ride.total_children = len(statuses)
    # A dropped-off child was picked up first
    ride.picked_up_count = sum(1 for s in statuses if s in ('picked_up', 'dropped_off'))
    ride.absent_count = statuses.count('absent')
    ride.dropped_off_count = statuses.count('dropped_off')
    ride.save(update_fields=['total_children', 'picked_up_count', 'absent_count', 'dropped_off_count', 'updated_at'])
    return ride


def all_children_terminal(ride: ActiveRide) -> bool:
    return not ride.children.exclude(status__in=RideChild.TERMINAL_STATUSES).exists()


def _mark_completed(ride: ActiveRide, early: bool = False):
    ride.status = 'completed'
    ride.completed_at = timezone.now()
    ride.completed_early = early
    ride.save(update_fields=['status', 'completed_at', 'completed_early', 'updated_at'])
    stopped = TrackingSession.objects.filter(ride=ride, is_active=True).update(
        is_active=False, stopped_at=ride.completed_at,
    )
    if stopped:
        logger.info("Stopped %d tracking session(s) of completed ride %s", stopped, ride.id)


def _parent_id_for(ride_child: RideChild) -> Optional[int]:
    if ride_child.booking_id:
        return Booking.objects.values_list('parent_id', flat=True).get(id=ride_child.booking_id)
    if ride_child.child_id:
        return ride_child.child.parent_id
    return None


def _notify_attendance(ride_child: RideChild, driver_id: int):
    try:
        parent_id = _parent_id_for(ride_child)
        if parent_id is None:
            logger.warning("No parent found for ride child %s", ride_child.id)
            return
        send_attendance_notification(parent_id, driver_id, ride_child.child_id, ride_child.full_name, ride_child.status)
    except Exception:
        logger.exception("Failed to send attendance notification for ride child %s", ride_child.id)


def _notify_trip_end(ride: ActiveRide):
    try:
        names_by_parent: Dict[int, list] = {}
        for ride_child in ride.children.select_related('booking', 'child'):
            parent_id = _parent_id_for(ride_child)
            if parent_id is not None:
                names_by_parent.setdefault(parent_id, []).append(ride_child.full_name)
    except Exception:
        logger.exception("Failed to look up parents for ride %s", ride.id)
        return

    for parent_id, names in names_by_parent.items():
        send_trip_end_notification(parent_id, ride.driver_id, ride.id, ", ".join(names))


@transaction.atomic
def update_child_status(driver, ride_id: int, ride_child_id: int, new_status: str, notes: str = "") -> RideResult:
    """
    Record a pickup, absence or drop-off for one child.

    Args:
        driver: Driver running the ride
        ride_id: ActiveRide ID
        ride_child_id: RideChild ID within that ride
        new_status: 'picked_up', 'absent' or 'dropped_off'
        notes: Optional driver note

    Returns:
        RideResult; ride_completed is True if this update finished the ride

    Raises:
        RideNotFoundError: If the ride is not this driver's
        RideAlreadyCompletedError: If the ride is already completed
        RideChildNotFoundError: If the child is not on the ride
        InvalidAttendanceTransitionError: If the status change is not allowed
    """
    ride = _get_driver_ride(driver, ride_id, lock=True)
    if ride.status == 'completed':
        raise RideAlreadyCompletedError("Ride is already completed")

    ride_child = ride.children.filter(id=ride_child_id).first()
    if ride_child is None:
        raise RideChildNotFoundError("Child is not part of this ride")

    if not ride_child.can_transition_to(new_status):
        raise InvalidAttendanceTransitionError(f"Cannot change {ride_child.status} to {new_status}")

    now = timezone.now()
    ride_child.status = new_status
    if new_status == 'picked_up':
        ride_child.picked_up_at = now
    elif new_status == 'dropped_off':
        ride_child.dropped_off_at = now
    if notes:
        ride_child.notes = notes
    ride_child.save()

    recalculate_counts(ride)

    completed = all_children_terminal(ride)
    if completed:
        _mark_completed(ride)

    if new_status in ('picked_up', 'absent'):
        transaction.on_commit(lambda: _notify_attendance(ride_child, driver.id))
    if completed:
        transaction.on_commit(lambda: _notify_trip_end(ride))
    transaction.on_commit(lambda: broadcast_ride_update(ride, event="ride_completed" if completed else "child_status_updated"))

    logger.info("Ride %s: %s -> %s%s", ride.ride_key, ride_child.full_name, new_status, " (ride completed)" if completed else "")
    return RideResult(
        success=True,
        ride=ride,
        ride_child=ride_child,
        message=f"{ride_child.full_name} marked as {new_status}",
        ride_completed=completed,
    )


@transaction.atomic
def complete_ride_early(driver, ride_id: int) -> RideResult:
    """
    End the ride before every child reaches a final status.

    Raises:
        RideNotFoundError: If the ride is not this driver's
        RideAlreadyCompletedError: If the ride is already completed
    """
    ride = _get_driver_ride(driver, ride_id, lock=True)
    if ride.status == 'completed':
        raise RideAlreadyCompletedError("Ride is already completed")

    _mark_completed(ride, early=True)

    transaction.on_commit(lambda: _notify_trip_end(ride))
    transaction.on_commit(lambda: broadcast_ride_update(ride, event="ride_completed"))

    logger.info("Driver %s completed ride %s early", driver.id, ride.ride_key)
    return RideResult(success=True, ride=ride, message="Ride completed", ride_completed=True)
