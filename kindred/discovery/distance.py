"""
Great-circle distance and radius filtering.
"""
import math
from typing import Optional, Tuple

EARTH_RADIUS_KM = 6371.0

Coordinates = Tuple[float, float]


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a slightly outside [0, 1] near coincident or antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def resolve_coordinates(
    latitude: Optional[float],
    longitude: Optional[float],
    fallback: Coordinates,
) -> Coordinates:
    """Use the fallback unless both components are present."""
    if latitude is None or longitude is None:
        return fallback
    return latitude, longitude


def within_radius(candidate: Coordinates, origin: Coordinates, radius_km: float) -> bool:
    return distance_km(origin[0], origin[1], candidate[0], candidate[1]) <= radius_km
