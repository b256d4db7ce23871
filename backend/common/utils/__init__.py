"""Common utility functions."""

from .geo import as_point, calculate_distance, distance_between, round_km

__all__ = [
    "as_point",
    "calculate_distance",
    "distance_between",
    "round_km",
]
