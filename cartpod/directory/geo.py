"""
Great-circle distance helpers for the location search.
"""

import math
from typing import Sequence

EARTH_RADIUS_KM = 6371.0088


def validate_coordinates(longitude: float, latitude: float) -> None:
    """Raise ValueError unless the pair is a valid [longitude, latitude]."""
    if not -180.0 <= longitude <= 180.0:
        raise ValueError("Longitude must be between -180 and 180")
    if not -90.0 <= latitude <= 90.0:
        raise ValueError("Latitude must be between -90 and 90")


def haversine_km(origin: Sequence[float], target: Sequence[float]) -> float:
    """
    Distance in kilometres between two ``[longitude, latitude]`` points.

    Example:
        >>> round(haversine_km([0.0, 0.0], [0.0, 1.0]), 3)
        111.195
    """
    lng1, lat1 = map(math.radians, origin)
    lng2, lat2 = map(math.radians, target)

    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))
