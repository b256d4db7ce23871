"""
Emergency (SOS) alerts raised by a driver during a ride.

The alert row is saved first; parent notifications follow after commit.
Address lookup and nearby hospitals/police come from the maps provider and
are skipped quietly if it is unavailable.
"""

import logging
from typing import List, Optional

from django.db import transaction
from django.utils import timezone

from common.maps import MapsClient
from notifications.services import send_emergency_notifications
from realtime.notifications import broadcast_ride_update
from realtime.utils import ride_parent_ids
from rides.models import ActiveRide, EmergencyAlert
from .exceptions import RideNotFoundError

logger = logging.getLogger(__name__)

NEARBY_SERVICE_KEYWORDS = ("hospital", "police")
NEARBY_SERVICES_PER_KEYWORD = 3


def find_nearby_services(client: MapsClient, lat: float, lng: float) -> List[dict]:
    services = []
    for keyword in NEARBY_SERVICE_KEYWORDS:
        result = client.nearby_places(lat, lng, keyword)
        if not result.ok:
            logger.warning("Nearby %s lookup failed: %s", keyword, result.error)
            continue
        for place in result.value[:NEARBY_SERVICES_PER_KEYWORD]:
            services.append({**place, "kind": keyword})
    return services


def trigger_emergency_alert(
    driver,
    ride_id: int,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    message: str = "",
    maps_client: Optional[MapsClient] = None,
) -> EmergencyAlert:
    """
    Raise an SOS for one of the driver's rides and alert every parent on it.

    Raises:
        RideNotFoundError: If the ride is not this driver's
    """
    ride = ActiveRide.objects.filter(id=ride_id, driver=driver).first()
    if ride is None:
        raise RideNotFoundError("Ride not found")

    address = ""
    nearby = []
    if latitude is not None and longitude is not None:
        client = maps_client or MapsClient()
        lookup = client.reverse_geocode(latitude, longitude)
        if lookup.ok:
            address = lookup.value
        nearby = find_nearby_services(client, latitude, longitude)

    parent_ids = ride_parent_ids(ride)

    with transaction.atomic():
        alert = EmergencyAlert.objects.create(
            ride=ride,
            driver=driver,
            latitude=latitude,
            longitude=longitude,
            address=address,
            message=message or "Emergency alert triggered by driver",
            parent_ids=parent_ids,
            nearby_services=nearby,
        )

        location = None
        if latitude is not None and longitude is not None:
            location = {"lat": float(latitude), "lng": float(longitude), "address": address}

        driver_name = driver.get_full_name() or driver.username
        transaction.on_commit(
            lambda: send_emergency_notifications(parent_ids, driver.id, driver_name, ride.id, location)
        )
        transaction.on_commit(lambda: broadcast_ride_update(ride, event="emergency_alert"))

    logger.warning("SOS %s raised by driver %s on ride %s (%d parents)", alert.id, driver.id, ride.id, len(parent_ids))
    return alert


def resolve_emergency_alert(driver, alert_id: int) -> EmergencyAlert:
    alert = EmergencyAlert.objects.filter(id=alert_id, driver=driver).first()
    if alert is None:
        raise RideNotFoundError("Emergency alert not found")
    if alert.status != 'resolved':
        alert.status = 'resolved'
        alert.resolved_at = timezone.now()
        alert.save(update_fields=['status', 'resolved_at'])
    return alert
