import math
import threading

import pytest

from src.route_optimizer.models.domain import Point, TravelMode
from src.route_optimizer.services.routing import service as routing_service
from src.route_optimizer.services.routing.executor import RetryPolicy
from src.route_optimizer.services.routing.waypoints import InvalidWaypointsError, dedupe_waypoints

from .conftest import StraightLineProvider, scatter_points


class FailingProvider:
    def __init__(self):
        self.calls = 0
        self._lock = threading.Lock()

    def directions(self, origin, destination, intermediates, travel_mode):
        with self._lock:
            self.calls += 1
        raise ConnectionError("Failed to connect to OSRM service")


def test_end_to_end_closed_loop(straight_line_provider):
    waypoints = scatter_points(25, seed=99)

    result = routing_service.plan_route(
        waypoints,
        provider=straight_line_provider,
        max_chunk_size=9,
        max_concurrency=3,
    )

    assert result.closed_loop is True
    assert result.failed_chunks == frozenset()
    assert result.path[0] == result.path[-1] == waypoints[0]
    assert result.ordered_points[0] == waypoints[0]
    assert sorted(result.ordered_points, key=lambda p: (p.lat, p.lng)) == sorted(waypoints, key=lambda p: (p.lat, p.lng))
    # 25 points in windows of 9 -> 3 chunks, plus the closing request
    assert result.chunk_count == 3
    assert len(straight_line_provider.calls) == 4
    assert all(len(call[2]) <= 7 for call in straight_line_provider.calls)
    assert result.total_distance_meters > 0
    assert result.total_duration_seconds > 0


def test_travel_mode_is_forwarded(straight_line_provider):
    routing_service.plan_route(
        scatter_points(4), provider=straight_line_provider, travel_mode=TravelMode.DRIVING
    )
    assert {call[3] for call in straight_line_provider.calls} == {TravelMode.DRIVING}


def test_total_failure_returns_straight_line_route():
    provider = FailingProvider()
    waypoints = scatter_points(12, seed=4)

    result = routing_service.plan_route(
        waypoints,
        provider=provider,
        max_chunk_size=5,
        retry=RetryPolicy(max_retries=0, backoff_seconds=0.0),
    )

    assert result.fallback_path is True
    assert result.path == result.ordered_points
    assert result.failed_chunks == frozenset(range(result.chunk_count + 1))
    assert result.closed_loop is False
    assert result.total_distance_meters == 0.0
    assert provider.calls == result.chunk_count + 1


def test_duplicates_removed_before_optimizing(straight_line_provider):
    a, b, c = Point(21.5, 39.2), Point(21.51, 39.21), Point(21.52, 39.19)
    result = routing_service.plan_route([a, b, a, c, b], provider=straight_line_provider)

    assert len(result.ordered_points) == 3
    assert set(result.ordered_points) == {a, b, c}
    assert dedupe_waypoints([a, b, a, c, b]) == (a, b, c)


def test_single_waypoint_makes_no_requests():
    provider = FailingProvider()
    only = Point(21.5, 39.2)

    result = routing_service.plan_route([only], provider=provider)

    assert provider.calls == 0
    assert result.path == (only,)
    assert result.closed_loop is True
    assert result.failed_chunks == frozenset()


def test_empty_waypoints_rejected(straight_line_provider):
    with pytest.raises(InvalidWaypointsError):
        routing_service.plan_route([], provider=straight_line_provider)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_non_finite_coordinates_rejected(straight_line_provider, bad):
    with pytest.raises(InvalidWaypointsError, match="Waypoint 1"):
        routing_service.plan_route([Point(21.5, 39.2), Point(bad, 39.2)], provider=straight_line_provider)
    assert straight_line_provider.calls == []


def test_build_provider_uses_configured_backend(monkeypatch):
    monkeypatch.setattr(routing_service, "OSRMClient", lambda: "osrm-client")
    monkeypatch.setattr(routing_service, "GoogleDirectionsClient", lambda: "google-client")

    assert routing_service.build_provider("osrm") == "osrm-client"
    assert routing_service.build_provider("google") == "google-client"
    with pytest.raises(ValueError):
        routing_service.build_provider("here")


def test_optimize_route_validates_before_building_provider(monkeypatch):
    from src.route_optimizer.schemas.routing import RouteRequest

    def unconfigured(name=None):
        raise ValueError("OSRM base URL is not configured.")

    monkeypatch.setattr(routing_service, "build_provider", unconfigured)

    with pytest.raises(InvalidWaypointsError, match="At least one waypoint"):
        routing_service.optimize_route(RouteRequest(waypoints=[]))
