"""
Geodesy helpers used by the trip matching engine.

Points are (lat, lon) pairs in decimal degrees; polylines are ordered
sequences of such points as returned by the routing service.
"""
from math import radians, cos, sin, asin, sqrt
from typing import Optional, Sequence, Tuple

from config import ROUTE_PROXIMITY_KM

Point = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0


def haversine_km(p1: Sequence[float], p2: Sequence[float]) -> float:
    """
    Calculate the great circle distance between two points on the Earth
    using the Haversine formula.

    Returns:
        Distance in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [p1[0], p1[1], p2[0], p2[1]])

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(min(1.0, sqrt(a)))

    return EARTH_RADIUS_KM * c


def distance_to_polyline(point: Sequence[float], polyline: Optional[Sequence[Sequence[float]]]) -> float:
    """
    Minimum distance in km from `point` to any vertex of `polyline`.

    Vertex-based approximation, no projection onto segments. An empty or
    missing polyline is infinitely far away.
    """
    if not polyline:
        return float("inf")
    return min(haversine_km(point, vertex) for vertex in polyline)


def is_near_route(
    point: Sequence[float],
    polyline: Optional[Sequence[Sequence[float]]],
    threshold_km: float = ROUTE_PROXIMITY_KM,
) -> bool:
    """True if `point` lies within `threshold_km` of the route."""
    return distance_to_polyline(point, polyline) <= threshold_km
