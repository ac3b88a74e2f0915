"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from ...models.domain import Point, TravelMode


@dataclass(frozen=True, slots=True)
class Chunk:
    """Contiguous slice of a tour sent as one directions request."""

    index: int
    points: tuple[Point, ...]

    @property
    def origin(self) -> Point:
        return self.points[0]

    @property
    def destination(self) -> Point:
        return self.points[-1]

    @property
    def intermediates(self) -> tuple[Point, ...]:
        return self.points[1:-1]


@dataclass(frozen=True, slots=True)
class Leg:
    distance_meters: float
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class ChunkResult:
    path: tuple[Point, ...]
    legs: tuple[Leg, ...]

    @property
    def distance_meters(self) -> float:
        return sum(leg.distance_meters for leg in self.legs)

    @property
    def duration_seconds(self) -> float:
        return sum(leg.duration_seconds for leg in self.legs)


@dataclass(frozen=True, slots=True)
class ChunkOutcome:
    """Result of one chunk request: either a ``ChunkResult`` or an error reason."""

    index: int
    result: ChunkResult | None = None
    error: str | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass(frozen=True, slots=True)
class RouteResult:
    """Stitched route. ``failure_reasons`` holds ``(index, reason)`` pairs sorted by index."""

    ordered_points: tuple[Point, ...]
    path: tuple[Point, ...]
    total_distance_meters: float
    total_duration_seconds: float
    closed_loop: bool
    failed_chunks: frozenset[int]
    failure_reasons: tuple[tuple[int, str], ...] = ()
    chunk_count: int = 0
    fallback_path: bool = False


class DirectionsProvider(Protocol):
    """Point-to-point directions backend invoked once per chunk."""

    def directions(
        self,
        origin: Point,
        destination: Point,
        intermediates: Sequence[Point],
        travel_mode: TravelMode,
    ) -> ChunkResult:
        ...
