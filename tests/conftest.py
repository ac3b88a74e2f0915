import random

import pytest

from src.route_optimizer.models.domain import Point
from src.route_optimizer.services.geospatial import distance_m
from src.route_optimizer.services.routing.models import ChunkResult, Leg

WALKING_SPEED_MPS = 1.4


class StraightLineProvider:
    """Directions stub that walks straight lines between the requested points."""

    def __init__(self):
        self.calls = []

    def directions(self, origin, destination, intermediates, travel_mode):
        self.calls.append((origin, destination, tuple(intermediates), travel_mode))
        stops = (origin, *intermediates, destination)
        legs = tuple(
            Leg(distance_meters=d, duration_seconds=d / WALKING_SPEED_MPS)
            for d in (distance_m(stops[i], stops[i + 1]) for i in range(len(stops) - 1))
        )
        return ChunkResult(path=stops, legs=legs)


def scatter_points(count: int, seed: int = 7, center=(28.6139, 77.2090), spread=0.05) -> list[Point]:
    rng = random.Random(seed)
    return [
        Point(center[0] + rng.uniform(-spread, spread), center[1] + rng.uniform(-spread, spread))
        for _ in range(count)
    ]


@pytest.fixture
def straight_line_provider() -> StraightLineProvider:
    return StraightLineProvider()
