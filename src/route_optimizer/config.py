"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTE_OPT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Survey Route Optimizer API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level applied by create_app().")
    directions_provider: Literal["osrm", "google"] = Field(
        default="osrm",
        description="Backend used for point-to-point directions requests.",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0.0)
    osrm_max_retries: int = Field(default=1, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="API key for the Google Directions web service.",
    )
    google_directions_url: str = Field(
        default="https://maps.googleapis.com/maps/api/directions/json",
    )
    default_travel_mode: Literal["WALKING", "DRIVING", "CYCLING"] = Field(
        default="WALKING",
        description="Travel mode used when a request does not name one.",
    )
    max_chunk_size: int = Field(
        default=9,
        ge=2,
        description="Points per directions request, origin and destination included.",
    )
    max_concurrent_requests: int = Field(default=3, ge=1)
    chunk_max_retries: int = Field(default=2, ge=0)
    chunk_backoff_seconds: float = Field(default=0.5, ge=0.0)
    two_opt_max_passes: int = Field(default=50, ge=1)
    two_opt_epsilon: float = Field(default=1e-6, gt=0.0)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("default_travel_mode", mode="before")
    @classmethod
    def _upper_travel_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


settings = Settings()
