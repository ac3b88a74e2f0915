"""Merge per-chunk directions into a single route and aggregate its totals."""

from __future__ import annotations

import logging
from typing import Sequence

from ...models.domain import Point
from .models import ChunkOutcome, RouteResult

logger = logging.getLogger(__name__)


def _extend_path(path: list[Point], segment: Sequence[Point]) -> None:
    if not segment:
        return
    if path and path[-1] == segment[0]:
        path.extend(segment[1:])
    else:
        path.extend(segment)


def stitch(
    tour: Sequence[Point],
    outcomes: Sequence[ChunkOutcome],
    closing: ChunkOutcome | None = None,
) -> RouteResult:
    """Build the ``RouteResult`` for ``tour`` from its chunk outcomes.

    ``closing`` is the outcome of the request from the last tour point back to
    the anchor, or None when no such request was needed. When none of the
    regular chunks returned a path, the tour itself is used as a straight-line
    path so the result is never empty.
    """
    path: list[Point] = []
    total_distance = 0.0
    total_duration = 0.0
    failure_reasons: dict[int, str] = {}

    for outcome in outcomes:
        if outcome.result is None:
            failure_reasons[outcome.index] = outcome.error or "unknown error"
            continue
        _extend_path(path, outcome.result.path)
        total_distance += outcome.result.distance_meters
        total_duration += outcome.result.duration_seconds

    # A single-point tour issues no requests, so its path is not a fallback.
    fallback = not path and bool(outcomes)
    if fallback:
        logger.warning(f"No chunk returned a usable path; falling back to straight lines over {len(tour)} points")
    if not path:
        path = list(tour)

    closed_loop = True
    if closing is not None:
        if closing.result is None:
            closed_loop = False
            failure_reasons[closing.index] = closing.error or "unknown error"
        else:
            _extend_path(path, closing.result.path)
            total_distance += closing.result.distance_meters
            total_duration += closing.result.duration_seconds

    return RouteResult(
        ordered_points=tuple(tour),
        path=tuple(path),
        total_distance_meters=total_distance,
        total_duration_seconds=total_duration,
        closed_loop=closed_loop,
        failed_chunks=frozenset(failure_reasons),
        failure_reasons=tuple(sorted(failure_reasons.items())),
        chunk_count=len(outcomes),
        fallback_path=fallback,
    )
