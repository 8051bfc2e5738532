from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, computed_field

from ..geo.coords import Coordinate


class RouteError(Exception):
    """No route could be produced; callers clear the route and offer a retry."""

    def __init__(self, message: str, *, retryable: bool = True, not_found: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.not_found = not_found


class TransportMode(str, Enum):
    walk = "walk"
    drive = "drive"
    transit = "transit"


class RouteStep(BaseModel):
    instruction: str
    distance: float = Field(..., ge=0.0)
    duration: float = Field(..., ge=0.0)
    kind: str = "walk"
    transit_line: str | None = None
    transit_color: str | None = None

    @computed_field
    @property
    def distance_text(self) -> str:
        return format_distance(self.distance)

    @computed_field
    @property
    def duration_text(self) -> str:
        return format_duration(self.duration)


class RouteInfo(BaseModel):
    mode: TransportMode
    distance: float
    duration: float
    geometry: list[Coordinate] = Field(..., min_length=1)
    steps: list[RouteStep] = Field(default_factory=list)
    synthesized: bool = False

    @property
    def destination(self) -> Coordinate:
        return self.geometry[-1]

    @computed_field
    @property
    def distance_text(self) -> str:
        return format_distance(self.distance)

    @computed_field
    @property
    def duration_text(self) -> str:
        return format_duration(self.duration)


class Maneuver(BaseModel):
    type: str
    modifier: str | None = None
    road: str = ""
    distance: float = 0.0
    duration: float = 0.0


class RawRoute(BaseModel):
    """Routing-service answer, already converted to lat/lng coordinates."""

    distance: float
    duration: float
    geometry: list[Coordinate]
    maneuvers: list[Maneuver] = Field(default_factory=list)


class RouteRequest(BaseModel):
    origin: Coordinate | None = None
    destination: Coordinate | None = None
    venue_id: str | None = None
    mode: TransportMode = TransportMode.walk


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{round(seconds)} sec"
    if seconds < 3600:
        return f"{round(seconds / 60)} min"
    hours = int(seconds // 3600)
    mins = round((seconds % 3600) / 60)
    return f"{hours}h {mins}m"


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"
