"""
Geodesic metrics on a spherical Earth.

Lengths use the Haversine great-circle distance. Polygon areas use a
line-integral approximation of spherical excess over the outer ring; holes
are not subtracted. Both use a mean Earth radius of 6371 km.
"""

import math
from typing import Sequence

from .document import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of the first point in degrees
        lon1: Longitude of the first point in degrees
        lat2: Latitude of the second point in degrees
        lon2: Longitude of the second point in degrees

    Returns:
        Distance in kilometers
    """
    d_lat = ((lat2 - lat1) * math.pi) / 180
    d_lon = ((lon2 - lon1) * math.pi) / 180
    a = (
        math.sin(d_lat / 2) * math.sin(d_lat / 2)
        + math.cos((lat1 * math.pi) / 180)
        * math.cos((lat2 * math.pi) / 180)
        * math.sin(d_lon / 2)
        * math.sin(d_lon / 2)
    )
    # Rounding can push a just past 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def line_length(coordinates: Sequence[Coordinate]) -> float:
    """Sum of Haversine distances between consecutive (lng, lat, alt) triples."""
    length = 0.0
    for previous, current in zip(coordinates, coordinates[1:]):
        length += haversine_distance(previous[1], previous[0], current[1], current[0])
    return length


def polygon_area(ring: Sequence[Coordinate]) -> float:
    """
    Approximate area enclosed by a ring in square kilometers.

    Accumulates (lon2 - lon1) * (2 + sin(lat1) + sin(lat2)) over every edge,
    including the closing edge from the last vertex back to the first.
    Rings with fewer than three points have zero area.
    """
    if len(ring) < 3:
        return 0.0

    area = 0.0
    for i in range(len(ring)):
        j = (i + 1) % len(ring)

        lat1 = (ring[i][1] * math.pi) / 180
        lon1 = (ring[i][0] * math.pi) / 180
        lat2 = (ring[j][1] * math.pi) / 180
        lon2 = (ring[j][0] * math.pi) / 180

        area += (lon2 - lon1) * (2 + math.sin(lat1) + math.sin(lat2))

    return abs((area * EARTH_RADIUS_KM * EARTH_RADIUS_KM) / 2)
