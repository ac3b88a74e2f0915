"""Routing orchestration service."""

from __future__ import annotations

import functools
import logging
import threading
from typing import Sequence

from ...config import settings
from ...models.domain import Point, TravelMode
from ...schemas.routing import (
    OrderRequest,
    OrderResponse,
    RouteRequest,
    RouteResponse,
    WaypointModel,
)
from ..geospatial import distance_m, path_length_m
from .chunking import build_chunks, closing_chunk
from .executor import RetryPolicy, run_chunks
from .google_client import GoogleDirectionsClient
from .models import Chunk, ChunkResult, DirectionsProvider, RouteResult
from .osrm_client import OSRMClient
from .stitcher import stitch
from .tour import optimize_order
from .waypoints import dedupe_waypoints, validate_waypoints

logger = logging.getLogger(__name__)


def build_provider(name: str | None = None) -> DirectionsProvider:
    """Instantiate the configured directions backend."""
    name = name or settings.directions_provider
    if name == "osrm":
        return OSRMClient()
    if name == "google":
        return GoogleDirectionsClient()
    raise ValueError(f"Unknown directions provider: {name}")


def _request_chunk(provider: DirectionsProvider, travel_mode: TravelMode, chunk: Chunk) -> ChunkResult:
    return provider.directions(chunk.origin, chunk.destination, chunk.intermediates, travel_mode)


def prepare_tour(waypoints: Sequence[Point]) -> tuple[Point, ...]:
    """Validate, de-duplicate and order waypoints. The first waypoint stays first."""
    validate_waypoints(waypoints)
    unique = dedupe_waypoints(waypoints)
    if len(unique) < len(waypoints):
        logger.info(f"Removed {len(waypoints) - len(unique)} duplicate waypoint(s)")
    return optimize_order(
        unique,
        epsilon=settings.two_opt_epsilon,
        max_passes=settings.two_opt_max_passes,
    )


def plan_route(
    waypoints: Sequence[Point],
    *,
    provider: DirectionsProvider,
    travel_mode: TravelMode = TravelMode.WALKING,
    max_chunk_size: int | None = None,
    max_concurrency: int | None = None,
    retry: RetryPolicy | None = None,
    cancel_event: threading.Event | None = None,
) -> RouteResult:
    """Order ``waypoints`` into a loop and fetch directions for it chunk by chunk.

    Raises ``InvalidWaypointsError`` for an empty list or non-finite coordinates.
    Once the input is valid, provider failures never raise: they are reported
    through ``RouteResult.failed_chunks``.
    """
    tour = prepare_tour(waypoints)
    chunks = build_chunks(tour, max_chunk_size or settings.max_chunk_size)
    closing = closing_chunk(tour, index=len(chunks))
    requests = [*chunks, closing] if closing is not None else list(chunks)

    logger.info(
        f"Requesting directions for {len(tour)} waypoints in {len(chunks)} chunk(s)"
        f"{' plus loop closure' if closing is not None else ''} ({travel_mode.value})"
    )
    outcomes = run_chunks(
        requests,
        functools.partial(_request_chunk, provider, travel_mode),
        max_concurrency=max_concurrency or settings.max_concurrent_requests,
        retry=retry or RetryPolicy(settings.chunk_max_retries, settings.chunk_backoff_seconds),
        cancel_event=cancel_event,
    )

    if closing is not None:
        return stitch(tour, outcomes[:-1], outcomes[-1])
    return stitch(tour, outcomes)


def _to_points(waypoints: Sequence[WaypointModel]) -> list[Point]:
    return [Point(lat=w.lat, lng=w.lng) for w in waypoints]


def _to_models(points: Sequence[Point]) -> list[WaypointModel]:
    return [WaypointModel(lat=p.lat, lng=p.lng) for p in points]


def order_waypoints(payload: OrderRequest) -> OrderResponse:
    """Optimize the visiting order only, without calling a directions provider."""
    points = _to_points(payload.waypoints)
    tour = prepare_tour(points)
    loop_length = path_length_m(tour) + (distance_m(tour[-1], tour[0]) if len(tour) > 1 else 0.0)
    return OrderResponse(
        ordered_points=_to_models(tour),
        straight_line_distance_meters=loop_length,
        duplicates_removed=len(points) - len(tour),
    )


def optimize_route(payload: RouteRequest) -> RouteResponse:
    travel_mode = payload.travel_mode or TravelMode(settings.default_travel_mode)
    points = _to_points(payload.waypoints)
    # Input errors take precedence over provider configuration errors.
    validate_waypoints(points)
    provider = build_provider(payload.provider)

    result = plan_route(
        points,
        provider=provider,
        travel_mode=travel_mode,
        max_chunk_size=payload.max_chunk_size,
        max_concurrency=payload.max_concurrency,
    )

    if result.failed_chunks:
        logger.warning(
            f"Route computed with {len(result.failed_chunks)} failed request(s): {sorted(result.failed_chunks)}"
        )

    return RouteResponse(
        ordered_points=_to_models(result.ordered_points),
        path=_to_models(result.path),
        total_distance_meters=result.total_distance_meters,
        total_duration_seconds=result.total_duration_seconds,
        closed_loop=result.closed_loop,
        failed_chunks=sorted(result.failed_chunks),
        failure_reasons=dict(result.failure_reasons),
        metadata={
            "provider": payload.provider or settings.directions_provider,
            "travel_mode": travel_mode.value,
            "chunk_count": result.chunk_count,
            "fallback_path": result.fallback_path,
            "waypoint_count": len(result.ordered_points),
            "duplicates_removed": len(points) - len(result.ordered_points),
        },
    )
