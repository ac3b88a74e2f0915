"""HTTP client for the Google Directions web service."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import Point, TravelMode
from .models import ChunkResult, Leg
from .osrm_client import decode_polyline

GOOGLE_MODES: dict[TravelMode, str] = {
    TravelMode.WALKING: "walking",
    TravelMode.DRIVING: "driving",
    TravelMode.CYCLING: "bicycling",
}

logger = logging.getLogger(__name__)


def _format_point(point: Point) -> str:
    return f"{point.lat},{point.lng}"


class GoogleDirectionsClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.base_url = base_url or settings.google_directions_url
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=10.0))

    def directions(
        self,
        origin: Point,
        destination: Point,
        intermediates: Sequence[Point],
        travel_mode: TravelMode,
    ) -> ChunkResult:
        params = {
            "origin": _format_point(origin),
            "destination": _format_point(destination),
            "mode": GOOGLE_MODES[travel_mode],
            "key": self.api_key,
        }
        if intermediates:
            params["waypoints"] = "|".join(_format_point(p) for p in intermediates)

        client = self._get_client()
        try:
            response = client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()
        finally:
            client.close()

        status = data.get("status")
        if status != "OK":
            detail = data.get("error_message") or "no details"
            raise ValueError(f"Google Directions request failed with status {status}: {detail}")
        if not data.get("routes"):
            raise ValueError("Google Directions response contains no routes.")

        route = data["routes"][0]
        encoded = route.get("overview_polyline", {}).get("points", "")
        path = tuple(Point(lat, lon) for lat, lon in decode_polyline(encoded))
        legs = tuple(
            Leg(
                distance_meters=float(leg.get("distance", {}).get("value", 0.0)),
                duration_seconds=float(leg.get("duration", {}).get("value", 0.0)),
            )
            for leg in route.get("legs", [])
        )
        logger.debug(f"Google Directions returned {len(path)} path points over {len(legs)} legs")
        return ChunkResult(path=path, legs=legs)
