"""Visiting-order heuristics: nearest-neighbour construction and 2-opt improvement.

Both functions are pure and deterministic. The first point of the input is the
anchor (start and return point of the loop) and always stays at index 0.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ...models.domain import Point
from ..geospatial import distance_m, path_length_m

DEFAULT_TWO_OPT_EPSILON = 1e-6
DEFAULT_TWO_OPT_MAX_PASSES = 50

logger = logging.getLogger(__name__)


def tour_length_m(tour: Sequence[Point]) -> float:
    """Open-path length of the tour (the closing leg back to the anchor is excluded)."""
    return path_length_m(tour)


def nearest_neighbor_tour(points: Sequence[Point]) -> tuple[Point, ...]:
    """Build a tour greedily, always moving to the closest unvisited point.

    Ties go to the point that appears first in the input.
    """
    if len(points) <= 2:
        return tuple(points)

    tour = [points[0]]
    remaining = list(points[1:])
    while remaining:
        current = tour[-1]
        best_idx = 0
        best_dist = distance_m(current, remaining[0])
        for idx in range(1, len(remaining)):
            dist = distance_m(current, remaining[idx])
            # strict comparison keeps the first-encountered candidate on ties
            if dist < best_dist:
                best_idx, best_dist = idx, dist
        tour.append(remaining.pop(best_idx))
    return tuple(tour)


def two_opt(
    tour: Sequence[Point],
    *,
    epsilon: float = DEFAULT_TWO_OPT_EPSILON,
    max_passes: int = DEFAULT_TWO_OPT_MAX_PASSES,
) -> tuple[Point, ...]:
    """Refine a tour by reversing segments that shorten it.

    Indices 0 and n-1 are pinned, so the anchor never moves. A move is taken
    only when it saves more than ``epsilon`` meters, and at most
    ``max_passes`` full scans are made.
    """
    n = len(tour)
    if n <= 3:
        return tuple(tour)

    route = list(tour)
    passes = 0
    improved = True
    while improved and passes < max_passes:
        improved = False
        passes += 1
        for i in range(1, n - 2):
            for k in range(i + 1, n - 1):
                a, b, c, d = route[i - 1], route[i], route[k], route[k + 1]
                delta = distance_m(a, b) + distance_m(c, d) - distance_m(a, c) - distance_m(b, d)
                if delta > epsilon:
                    route[i : k + 1] = reversed(route[i : k + 1])
                    improved = True

    if improved:
        logger.warning(f"2-opt stopped at the pass cap ({max_passes}) on a {n}-point tour")
    else:
        logger.debug(f"2-opt converged after {passes} passes on a {n}-point tour")
    return tuple(route)


def optimize_order(
    points: Sequence[Point],
    *,
    epsilon: float = DEFAULT_TWO_OPT_EPSILON,
    max_passes: int = DEFAULT_TWO_OPT_MAX_PASSES,
) -> tuple[Point, ...]:
    """Nearest-neighbour construction followed by 2-opt."""
    constructed = nearest_neighbor_tour(points)
    return two_opt(constructed, epsilon=epsilon, max_passes=max_passes)
