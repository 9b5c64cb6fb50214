# poifinder/core/geo.py
from __future__ import annotations

import math

from .errors import InvalidCoordinate

EARTH_RADIUS_M = 6_371_000.0


def validate_coordinate(lat: float, lon: float) -> None:
    """Raise InvalidCoordinate unless -90<=lat<=90 and -180<=lon<=180. Never clamps."""
    if not isinstance(lat, (int, float)) or math.isnan(lat) or not -90.0 <= lat <= 90.0:
        raise InvalidCoordinate(f"latitude out of range: {lat!r}", latitude=lat, longitude=lon)
    if not isinstance(lon, (int, float)) or math.isnan(lon) or not -180.0 <= lon <= 180.0:
        raise InvalidCoordinate(f"longitude out of range: {lon!r}", latitude=lat, longitude=lon)


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres (Haversine)."""
    validate_coordinate(lat1, lon1)
    validate_coordinate(lat2, lon2)

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push `a` a hair past 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c
