"""
Driver matching service.

This module handles:
    - Seat availability per driver
    - Route compatibility tiers between a child and a driver route
    - Driver ratings and each parent's trusted drivers
    - The filtered, ranked driver listing shown to parents
"""

from .exceptions import RatingValidationError, TrustedDriverError
from .availability import DriverAvailability, get_driver_availability
from .route_compatibility import (
    RouteCompatibility,
    classify_route_compatibility,
    is_route_compatible_by_legs,
)
from .driver_ratings import (
    RECOMMENDED_MIN_RATING,
    get_rating_summary,
    get_trusted_drivers,
    rate_driver,
    remove_trusted_driver,
    set_trusted_driver,
)
from .driver_listing import DriverFilters, DriverListing, list_available_drivers

__all__ = [
    "RatingValidationError",
    "TrustedDriverError",
    "DriverAvailability",
    "get_driver_availability",
    "RouteCompatibility",
    "classify_route_compatibility",
    "is_route_compatible_by_legs",
    "RECOMMENDED_MIN_RATING",
    "get_rating_summary",
    "get_trusted_drivers",
    "rate_driver",
    "remove_trusted_driver",
    "set_trusted_driver",
    "DriverFilters",
    "DriverListing",
    "list_available_drivers",
]
