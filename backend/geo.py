"""Spherical geometry helpers on (lng, lat) coordinates."""

import math

from models import Coordinate

EARTH_RADIUS_KM: float = 6371.0


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Returns the great-circle distance in kilometres between two points."""
    lng1, lat1 = a
    lng2, lat2 = b
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = lat2_r - lat1_r
    dlng = math.radians(lng2 - lng1)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def project_point(
    origin: Coordinate, distance: float, bearing_deg: float
) -> Coordinate:
    """Returns the point ``distance`` km from ``origin`` along ``bearing_deg``.

    Bearing is clockwise from north. Uses the spherical destination-point
    formula, which is good enough for the sub-150 km offsets used to pick
    bike start points.
    """
    lng, lat = origin
    angular = distance / EARTH_RADIUS_KM
    bearing = math.radians(bearing_deg)
    lat1 = math.radians(lat)
    lng1 = math.radians(lng)

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(bearing)
    )
    lng2 = lng1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )
    return math.degrees(lng2), math.degrees(lat2)
