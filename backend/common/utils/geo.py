"""
Geographic utility functions.

This module provides core geospatial calculations used throughout the application.
All distances are in kilometers.
"""

from math import radians, cos, sin, atan2, sqrt
from typing import Any, Mapping, Optional

EARTH_RADIUS_KM = 6371.0


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two points using the Haversine formula.
    
    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point
    
    Returns:
        Distance in kilometers
    """
    lat1, lon1, lat2, lon2 = map(float, [lat1, lon1, lat2, lon2])
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_between(point1: Mapping[str, Any], point2: Mapping[str, Any]) -> float:
    """Distance in km between two ``{"lat", "lng"}`` mappings."""
    return calculate_distance(point1["lat"], point1["lng"], point2["lat"], point2["lng"])


def round_km(distance: float, places: int = 2) -> float:
    """Round a distance for display and pricing (two decimals by default)."""
    return round(distance, places)


def as_point(lat, lng, address: Optional[str] = None) -> Optional[dict]:
    """Build a location dict, or None when either coordinate is missing."""
    if lat is None or lng is None:
        return None
    point = {"lat": float(lat), "lng": float(lng)}
    if address is not None:
        point["address"] = address
    return point
