"""Waypoint validation and de-duplication."""

from __future__ import annotations

import math
from typing import Sequence

from ...models.domain import Point


class InvalidWaypointsError(ValueError):
    """Raised when a waypoint set cannot be optimized."""


def validate_waypoints(points: Sequence[Point]) -> None:
    if not points:
        raise InvalidWaypointsError("At least one waypoint is required.")
    for index, point in enumerate(points):
        if not (math.isfinite(point.lat) and math.isfinite(point.lng)):
            raise InvalidWaypointsError(
                f"Waypoint {index} has non-finite coordinates: ({point.lat}, {point.lng})"
            )


def dedupe_waypoints(points: Sequence[Point]) -> tuple[Point, ...]:
    """Drop exact duplicates, keeping the first occurrence and the input order."""

    seen: set[Point] = set()
    unique: list[Point] = []
    for point in points:
        if point in seen:
            continue
        seen.add(point)
        unique.append(point)
    return tuple(unique)
