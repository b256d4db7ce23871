"""
Driver selection listing for parents.

Lists approved drivers with open booking and free seats, annotated with
route compatibility for a given child, the driver's rating and whether the
parent trusts them. Best matches come first.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from drivers.models import DriverProfile
from .availability import get_driver_availability
from .driver_ratings import get_rating_summaries, get_trust_levels
from .route_compatibility import (
    RouteCompatibility,
    classify_route_compatibility,
    is_listable_route,
    meets_minimum_quality,
    tier_rank,
)

logger = logging.getLogger(__name__)

TRUST_RANK = {"priority": 0, "preferred": 1}


@dataclass
class DriverFilters:
    gender: Optional[str] = None
    route_quality: Optional[str] = None
    min_seats: int = 1
    vehicle_type: Optional[str] = None
    min_rating: Optional[float] = None


@dataclass
class DriverListing:
    profile: DriverProfile
    availability: Any
    compatibility: Optional[RouteCompatibility] = None
    average_rating: Optional[float] = None
    rating_count: int = 0
    trust: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def rank(self):
        # Unrated drivers sort after every rated one
        rating = -self.average_rating if self.average_rating is not None else 1.0
        if self.compatibility is None:
            return (TRUST_RANK.get(self.trust, 2), rating)
        distance = self.compatibility.total_distance
        return (
            tier_rank(self.compatibility.quality),
            TRUST_RANK.get(self.trust, 2),
            rating,
            distance if distance is not None else float("inf"),
        )


def list_available_drivers(child=None, filters: Optional[DriverFilters] = None,
                           parent_id: Optional[int] = None) -> List[DriverListing]:
    """
    Build the driver selection list.
    
    Args:
        child: Child instance; when given, route compatibility is computed and
               Poor/Unknown matches are dropped
        filters: Optional DriverFilters
        parent_id: Parent whose trusted drivers rank first; defaults to the child's parent
    
    Returns:
        DriverListing list sorted by route tier, then the parent's trust,
        then average rating, then total route distance
    """
    filters = filters or DriverFilters()
    if parent_id is None and child is not None:
        parent_id = child.parent_id

    profiles = DriverProfile.objects.filter(
        status='approved',
        booking_open=True,
        user__is_active=True,
    ).select_related('user')

    if filters.gender:
        profiles = profiles.filter(gender=filters.gender)
    if filters.vehicle_type:
        profiles = profiles.filter(vehicle_type=filters.vehicle_type)

    profiles = list(profiles)
    ratings = get_rating_summaries(p.user_id for p in profiles)
    trust = get_trust_levels(parent_id)

    min_seats = max(1, filters.min_seats or 1)
    listings: List[DriverListing] = []

    for profile in profiles:
        rating = ratings.get(profile.user_id, {})
        average = rating.get("average_rating")
        if filters.min_rating is not None and (average is None or average < filters.min_rating):
            continue

        availability = get_driver_availability(profile.user_id, profile=profile)
        if availability.available_seats < min_seats:
            continue

        compatibility = None
        if child is not None:
            pickup, school = child.pickup_location, child.school_location
            compatibility = classify_route_compatibility(pickup, school, profile.route_start, profile.route_end)

            if not is_listable_route(compatibility, pickup, school, profile.route_start, profile.route_end):
                continue
            if not meets_minimum_quality(compatibility.quality, filters.route_quality):
                continue

        listings.append(DriverListing(
            profile=profile,
            availability=availability,
            compatibility=compatibility,
            average_rating=average,
            rating_count=rating.get("rating_count", 0),
            trust=trust.get(profile.user_id),
        ))

    listings.sort(key=DriverListing.rank)

    logger.debug("Driver listing for child %s: %d drivers", getattr(child, "id", None), len(listings))
    return listings
