"""
Route compatibility between a child's trip and a driver's habitual route.

Two rules exist:
    - tiered: pickup leg + school leg summed, then bucketed into
      Excellent (<2 km) / Good (<5) / Fair (<10) / Poor
    - legs: each leg screened on its own against ROUTE_LEG_LIMIT_KM

ROUTE_COMPATIBILITY_RULE picks which one gates driver listings.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from common.conf import get_setting
from common.utils.geo import distance_between, round_km

EXCELLENT = "Excellent"
GOOD = "Good"
FAIR = "Fair"
POOR = "Poor"
UNKNOWN = "Unknown"

# Upper bounds (exclusive) on the summed distance, best tier first
TIER_THRESHOLDS_KM = (
    (2, EXCELLENT),
    (5, GOOD),
    (10, FAIR),
)

# Best to worst
TIER_ORDER = (EXCELLENT, GOOD, FAIR, POOR, UNKNOWN)

LISTABLE_TIERS = (EXCELLENT, GOOD, FAIR)
WARNING_TIERS = (GOOD, FAIR)

RULE_TIERED = "tiered"
RULE_LEGS = "legs"

Point = Mapping[str, Any]


@dataclass
class RouteCompatibility:
    quality: str
    pickup_distance: Optional[float] = None
    school_distance: Optional[float] = None

    @property
    def total_distance(self) -> Optional[float]:
        if self.pickup_distance is None or self.school_distance is None:
            return None
        return round_km(self.pickup_distance + self.school_distance)

    @property
    def requires_confirmation(self) -> bool:
        return self.quality in WARNING_TIERS

    @property
    def is_listable(self) -> bool:
        return self.quality in LISTABLE_TIERS

    def as_dict(self):
        return {
            "quality": self.quality,
            "pickup_distance": self.pickup_distance,
            "school_distance": self.school_distance,
            "total_distance": self.total_distance,
            "requires_confirmation": self.requires_confirmation,
        }


def tier_for_distance(total_km: float) -> str:
    for limit, tier in TIER_THRESHOLDS_KM:
        if total_km < limit:
            return tier
    return POOR


def tier_rank(quality: str) -> int:
    """0 for Excellent up to 4 for Unknown."""
    return TIER_ORDER.index(quality) if quality in TIER_ORDER else len(TIER_ORDER) - 1


def meets_minimum_quality(quality: str, minimum: Optional[str]) -> bool:
    if not minimum:
        return True
    return tier_rank(quality) <= tier_rank(minimum)


def classify_route_compatibility(
    pickup: Optional[Point],
    school: Optional[Point],
    route_start: Optional[Point],
    route_end: Optional[Point],
) -> RouteCompatibility:
    """
    Classify how well a driver's route serves a child.
    
    Args:
        pickup: Child pickup {lat, lng}
        school: Child school {lat, lng}
        route_start: Driver route start {lat, lng}
        route_end: Driver route end {lat, lng}
    
    Returns:
        RouteCompatibility, Unknown when any point is missing
    """
    if not (pickup and school and route_start and route_end):
        return RouteCompatibility(quality=UNKNOWN)

    pickup_distance = distance_between(pickup, route_start)
    school_distance = distance_between(school, route_end)

    return RouteCompatibility(
        quality=tier_for_distance(pickup_distance + school_distance),
        pickup_distance=round_km(pickup_distance),
        school_distance=round_km(school_distance),
    )


def is_route_compatible_by_legs(
    pickup: Optional[Point],
    school: Optional[Point],
    route_start: Optional[Point],
    route_end: Optional[Point],
    limit_km: Optional[float] = None,
) -> bool:
    """Both legs within ``limit_km`` of the driver's route, each checked on its own."""
    if not (pickup and school and route_start and route_end):
        return False

    if limit_km is None:
        limit_km = float(get_setting("ROUTE_LEG_LIMIT_KM"))

    return (
        distance_between(pickup, route_start) <= limit_km
        and distance_between(school, route_end) <= limit_km
    )


def is_listable_route(compatibility: RouteCompatibility, pickup, school, route_start, route_end) -> bool:
    """Apply the configured listing rule."""
    if get_setting("ROUTE_COMPATIBILITY_RULE") == RULE_LEGS:
        return is_route_compatible_by_legs(pickup, school, route_start, route_end)
    return compatibility.is_listable
