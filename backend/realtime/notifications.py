"""
Helpers for pushing ride events to connected WebSocket clients.

Everyone following a ride (its driver and the parents of children on it)
joins group ride_<ride_id>. Each state change sends the full ride snapshot,
so a client that missed an update only needs the latest message.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def user_group(user_id: int) -> str:
    return f"user_{user_id}"


def ride_group(ride_id: int) -> str:
    return f"ride_{ride_id}"


def _group_send(group: str, payload: Dict[str, Any]) -> bool:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.debug("No channel layer configured; dropping %s for %s", payload.get("type"), group)
        return False
    logger.debug("WS -> %s: %s", group, payload.get("type"))
    async_to_sync(channel_layer.group_send)(group, payload)
    return True


def build_ride_snapshot(ride) -> Dict[str, Any]:
    from rides.serializers import ActiveRideSerializer
    return ActiveRideSerializer(ride).data


def broadcast_ride_update(ride, event: str = "ride_updated") -> bool:
    """Send the full ride snapshot to ride_<id>. Failures are logged, never raised."""
    try:
        return _group_send(ride_group(ride.id), {
            "type": "ride_updated",
            "event": event,
            "ride_id": ride.id,
            "ride": build_ride_snapshot(ride),
        })
    except Exception:
        logger.exception("Failed to broadcast %s for ride %s", event, ride.id)
        return False


def broadcast_driver_location(ride_id: int, driver_id: int, lat: float, lng: float) -> bool:
    """Relay a live driver position to everyone following the ride."""
    try:
        return _group_send(ride_group(ride_id), {
            "type": "driver_track_location",
            "user_id": driver_id,
            "latitude": float(lat),
            "longitude": float(lng),
        })
    except Exception:
        logger.exception("Failed to broadcast location of driver %s on ride %s", driver_id, ride_id)
        return False
