"""Domain models for waypoints and travel modes."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class Point:
    """A geographic coordinate. Equality is exact, with no tolerance."""

    lat: float
    lng: float

    def as_lat_lon(self) -> tuple[float, float]:
        return (self.lat, self.lng)


class TravelMode(str, Enum):
    WALKING = "WALKING"
    DRIVING = "DRIVING"
    CYCLING = "CYCLING"
