"""Routing request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import TravelMode


class WaypointModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class OrderRequest(BaseModel):
    waypoints: List[WaypointModel] = Field(
        ...,
        description="Points to visit. The first one is the start and return point.",
    )


class OrderResponse(BaseModel):
    ordered_points: List[WaypointModel]
    straight_line_distance_meters: float
    duplicates_removed: int


class RouteRequest(BaseModel):
    waypoints: List[WaypointModel] = Field(
        ...,
        description="Points to visit. The first one is the start and return point.",
    )
    travel_mode: Optional[TravelMode] = None
    provider: Optional[Literal["osrm", "google"]] = Field(
        default=None,
        description="Directions backend; defaults to the configured provider.",
    )
    max_chunk_size: Optional[int] = Field(None, ge=2, description="Points per directions request.")
    max_concurrency: Optional[int] = Field(None, ge=1, le=16)


class RouteResponse(BaseModel):
    ordered_points: List[WaypointModel]
    path: List[WaypointModel]
    total_distance_meters: float
    total_duration_seconds: float
    closed_loop: bool
    failed_chunks: List[int]
    failure_reasons: Dict[int, str]
    metadata: dict
