"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from ..models.domain import Point

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_m(a: Point, b: Point) -> float:
    """Great-circle distance in meters between two points."""

    return haversine_km(a.lat, a.lng, b.lat, b.lng) * 1000.0


def path_length_m(points: Sequence[Point]) -> float:
    """Sum of great-circle distances between consecutive points."""

    return sum(distance_m(points[i], points[i + 1]) for i in range(len(points) - 1))
