"""Great-circle helpers for GPS tracks."""

import math

from workout_tracker.core.constants import EARTH_RADIUS_KM


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return great-circle distance in kilometers between two WGS84 points.

    Uses the standard haversine formula; sufficient for per-point distances
    over a typical GPS activity track.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return haversine_km(lat1, lon1, lat2, lon2) * 1000.0


def format_distance(meters: float | None) -> str:
    """Format meters for display: '850m' below one kilometer, '1.2km' above."""
    if meters is None:
        return ""
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"


def is_within_radius(
    center_lat: float,
    center_lon: float,
    lat: float,
    lon: float,
    radius_km: float,
) -> bool:
    return haversine_km(center_lat, center_lon, lat, lon) <= radius_km


def bounds(points) -> dict | None:
    """Bounding box of an iterable of objects with latitude/longitude."""
    points = list(points)
    if not points:
        return None
    lats = [p.latitude for p in points]
    lons = [p.longitude for p in points]
    return {
        "minLat": min(lats),
        "minLon": min(lons),
        "maxLat": max(lats),
        "maxLon": max(lons),
    }
