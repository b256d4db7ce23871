"""Live ride socket shared by drivers and parents."""

import logging
from typing import Dict, Any, Optional

from channels.db import database_sync_to_async

from realtime.notifications import ride_group
from .base import BaseConsumer

logger = logging.getLogger(__name__)


class RideConsumer(BaseConsumer):
    """
    Follows active school rides.

    Client messages:
        start_tracking  {ride_id}                       join ride_<id>, get the snapshot
        stop_tracking   {ride_id}                       leave ride_<id>
        tracking_update {ride_id, latitude, longitude}  driver position (drivers only)

    Each ride_updated event carries the whole ride, so a client replaces its
    copy with whatever arrived last.
    """

    greeting = "Ride tracking connection established"
    handlers = {
        **BaseConsumer.handlers,
        "start_tracking": "handle_start_tracking",
        "stop_tracking": "handle_stop_tracking",
        "tracking_update": "handle_tracking_update",
    }

    async def handle_start_tracking(self, content: Dict[str, Any]):
        ride_id = content.get("ride_id")
        if ride_id is None:
            await self.send_error("start_tracking requires ride_id")
            return

        snapshot = await self.ride_snapshot_for_user(ride_id)
        if snapshot is None:
            await self.send_error("You are not authorized to track this ride")
            return

        await self.join(ride_group(ride_id))
        await self.reply("tracking_started", ride_id=ride_id, ride=snapshot)

    async def handle_stop_tracking(self, content: Dict[str, Any]):
        ride_id = content.get("ride_id")
        if ride_id is not None:
            await self.leave(ride_group(ride_id))
            await self.reply("tracking_stopped", ride_id=ride_id)

    async def handle_tracking_update(self, content: Dict[str, Any]):
        if self.role != "driver":
            await self.send_error("Only drivers can send tracking updates")
            return

        try:
            ride_id = int(content["ride_id"])
            lat = float(content["latitude"])
            lng = float(content["longitude"])
        except (KeyError, TypeError, ValueError):
            await self.send_error("tracking_update requires ride_id, latitude, and longitude")
            return

        if not await self.record_location(ride_id, lat, lng):
            await self.send_error("Location tracking is not active for this ride")

    # Group events

    async def ride_updated(self, event):
        await self.send_json({
            "type": "ride_updated",
            "event": event.get("event"),
            "ride_id": event.get("ride_id"),
            "ride": event.get("ride"),
        })

    async def driver_track_location(self, event):
        await self.send_json({
            "type": "driver_track_location",
            "user_id": event.get("user_id"),
            "latitude": event.get("latitude"),
            "longitude": event.get("longitude"),
        })

    # Database

    @database_sync_to_async
    def ride_snapshot_for_user(self, ride_id) -> Optional[Dict[str, Any]]:
        from realtime.notifications import build_ride_snapshot
        from realtime.utils import is_ride_participant
        from rides.models import ActiveRide

        ride = ActiveRide.objects.filter(id=ride_id).first()
        if ride is None or not is_ride_participant(ride, self.user_id):
            return None
        return build_ride_snapshot(ride)

    @database_sync_to_async
    def record_location(self, ride_id: int, lat: float, lng: float) -> bool:
        from services.ride_management import LocationTracker, TrackingNotActiveError

        try:
            LocationTracker.resume(self.user, ride_id).update(lat, lng)
        except TrackingNotActiveError:
            logger.debug("Dropped position from driver %s for ride %s", self.user_id, ride_id)
            return False
        return True
