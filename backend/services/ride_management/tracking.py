"""
Live location tracking for a running ride.

A LocationTracker is an explicit object owned by whoever starts tracking
(the driver's HTTP request or WebSocket connection). Its state lives in a
TrackingSession row, so a later request can pick the session up again with
LocationTracker.resume().
"""

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from common.utils.geo import calculate_distance
from drivers.models import DriverProfile
from drivers.services import update_driver_location
from rides.models import ActiveRide, TrackingSession
from .exceptions import RideNotFoundError, RideAlreadyCompletedError, TrackingNotActiveError

logger = logging.getLogger(__name__)


class LocationTracker:
    """Start, feed and stop one driver's tracking session."""

    def __init__(self, driver, session: Optional[TrackingSession] = None):
        self.driver = driver
        self.session = session

    @classmethod
    def resume(cls, driver, ride_id: Optional[int] = None) -> "LocationTracker":
        """Attach to the driver's active session (optionally for one ride)."""
        sessions = TrackingSession.objects.filter(driver=driver, is_active=True)
        if ride_id is not None:
            sessions = sessions.filter(ride_id=ride_id)
        return cls(driver, sessions.first())

    @property
    def is_tracking(self) -> bool:
        return self.session is not None and self.session.is_active

    @transaction.atomic
    def start(self, ride_id: int) -> TrackingSession:
        """
        Open a session for one of the driver's in-progress rides.

        Any other active session of the driver is stopped first.

        Raises:
            RideNotFoundError: If the ride is not this driver's
            RideAlreadyCompletedError: If the ride is completed
        """
        ride = ActiveRide.objects.filter(id=ride_id, driver=self.driver).first()
        if ride is None:
            raise RideNotFoundError("Ride not found")
        if ride.status == 'completed':
            raise RideAlreadyCompletedError("Ride is already completed")

        TrackingSession.objects.filter(driver=self.driver, is_active=True).update(
            is_active=False, stopped_at=timezone.now(),
        )

        self.session = TrackingSession.objects.create(ride=ride, driver=self.driver)
        logger.info("Driver %s started tracking ride %s", self.driver.id, ride.id)
        return self.session

    def update(self, lat: float, lng: float) -> TrackingSession:
        """
        Record a new position and relay it to the ride group.

        Raises:
            TrackingNotActiveError: If no session is active
        """
        if not self.is_tracking:
            raise TrackingNotActiveError("Location tracking is not active")

        session = self.session
        # Completing the ride closes its sessions underneath a live tracker
        session.refresh_from_db(fields=['is_active'])
        if not session.is_active:
            raise TrackingNotActiveError("Location tracking is not active")

        if session.last_latitude is not None and session.last_longitude is not None:
            session.total_distance_km += calculate_distance(session.last_latitude, session.last_longitude, lat, lng)

        session.last_latitude = lat
        session.last_longitude = lng
        session.last_update_at = timezone.now()
        session.save(update_fields=['last_latitude', 'last_longitude', 'total_distance_km', 'last_update_at'])

        profile = DriverProfile.objects.filter(user=self.driver).first()
        if profile is not None:
            update_driver_location(profile, lat, lng, ride_id=session.ride_id)

        return session

    def stop(self) -> Optional[TrackingSession]:
        if not self.is_tracking:
            return self.session

        self.session.is_active = False
        self.session.stopped_at = timezone.now()
        self.session.save(update_fields=['is_active', 'stopped_at'])
        logger.info(
            "Driver %s stopped tracking ride %s after %.2f km",
            self.driver.id, self.session.ride_id, self.session.total_distance_km,
        )
        return self.session
