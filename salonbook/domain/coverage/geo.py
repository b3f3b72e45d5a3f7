"""Great-circle distance helpers for home-service coverage"""

import math

EARTH_RADIUS_KM = 6371


def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in kilometers.

    Symmetric, and exactly 0 for identical points. Only meant for
    point-in-radius filtering, never as an exact matching key.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def is_within_radius(
    center_lat: float, center_lon: float, lat: float, lon: float, radius_km: float
) -> bool:
    return haversine_distance_km(center_lat, center_lon, lat, lon) <= radius_km
