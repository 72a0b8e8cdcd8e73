"""Geospatial helpers.

Great-circle distance and bearing on a spherical Earth. Inputs are assumed to be
validated upstream; see :func:`is_valid_location`.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from math import asin, atan2, cos, degrees, radians, sin, sqrt
from typing import Protocol, TypeVar

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


class HasCoordinates(Protocol):
    latitude: float
    longitude: float


T = TypeVar("T", bound=HasCoordinates)


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in meters between two coordinates."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dphi = radians(lat2 - lat1)
    dlmb = radians(lon2 - lon1)

    h = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlmb / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points.
    return 2 * EARTH_RADIUS_M * asin(sqrt(min(1.0, h)))


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the initial bearing from point 1 to point 2, in degrees [0, 360)."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dlmb = radians(lon2 - lon1)

    y = sin(dlmb) * cos(phi2)
    x = cos(phi1) * sin(phi2) - sin(phi1) * cos(phi2) * cos(dlmb)
    bearing = (degrees(atan2(y, x)) + 360.0) % 360.0
    # (-tiny + 360) % 360 can round to exactly 360.0
    return 0.0 if bearing >= 360.0 else bearing


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Distance in meters between two :class:`GeoPoint` values."""
    return distance_m(a.lat, a.lon, b.lat, b.lon)


def is_valid_location(lat: float, lon: float) -> bool:
    """Return True when the pair lies inside [-90, 90] x [-180, 180]."""
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def is_within_radius(a: GeoPoint, b: GeoPoint, radius_m: float) -> bool:
    return haversine_m(a, b) <= radius_m


def find_nearest(origin: GeoPoint, candidates: Iterable[T]) -> tuple[T, float] | None:
    """Return the candidate closest to ``origin`` and its distance, or None if empty."""
    nearest: tuple[T, float] | None = None
    for candidate in candidates:
        d = distance_m(origin.lat, origin.lon, candidate.latitude, candidate.longitude)
        if nearest is None or d < nearest[1]:
            nearest = (candidate, d)
    return nearest


def format_distance(meters: float) -> str:
    """Render a distance as ``"850m"`` or ``"1.2km"``."""
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
