from django.utils import timezone

from drivers.models import DriverProfile
from realtime.notifications import broadcast_driver_location


# PROFILE & VEHICLE
def update_driver_profile(profile: DriverProfile, **fields):
    """Update plain profile fields (gender, vehicle, route, booking flag)."""
    for name, value in fields.items():
        setattr(profile, name, value)
    profile.save(update_fields=list(fields))
    return profile


def update_vehicle(profile: DriverProfile, vehicle_type, vehicle_capacity, vehicle_number="", vehicle_model=""):
    return update_driver_profile(
        profile,
        vehicle_type=vehicle_type,
        vehicle_capacity=vehicle_capacity,
        vehicle_number=vehicle_number,
        vehicle_model=vehicle_model,
    )


# ROUTE SETUP
def update_route(profile: DriverProfile, start: dict, end: dict):
    """
    Set the habitual route from two {lat, lng, address} points.
    Route compatibility for every parent is measured against these.
    """
    return update_driver_profile(
        profile,
        route_start_latitude=start["lat"],
        route_start_longitude=start["lng"],
        route_start_address=start.get("address", ""),
        route_end_latitude=end["lat"],
        route_end_longitude=end["lng"],
        route_end_address=end.get("address", ""),
    )


# BOOKING WINDOW
def set_booking_open(profile: DriverProfile, booking_open: bool):
    return update_driver_profile(profile, booking_open=booking_open)


# LOCATION
def update_driver_location(profile: DriverProfile, lat, lon, ride_id=None):
    """
    Store the driver's position. Called by the HTTP fallback and by tracking sessions.

    When a ride is given, the position is relayed to ride_<ride_id>.
    """
    profile.current_latitude = lat
    profile.current_longitude = lon
    profile.last_location_update = timezone.now()
    profile.save(update_fields=["current_latitude", "current_longitude", "last_location_update"])

    if ride_id is not None:
        broadcast_driver_location(ride_id, profile.user_id, float(lat), float(lon))

    return profile
