from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from ..catalog.models import Venue
from ..geo.coords import Coordinate


class Budget(str, Enum):
    low = "low"
    mid = "mid"
    high = "high"


class ItineraryStop(BaseModel):
    venue: Venue
    order: int = Field(..., ge=1)
    estimated_arrival: str
    estimated_wait: int


class Itinerary(BaseModel):
    budget: Budget
    cuisine: str | None = None
    stops: list[ItineraryStop] = Field(default_factory=list)

    @property
    def total_budget(self) -> float:
        return sum((s.venue.price_min + s.venue.price_max) / 2 for s in self.stops)

    @property
    def total_wait(self) -> int:
        return sum(s.estimated_wait for s in self.stops)

    def remove_stop(self, index: int) -> None:
        """Drop the stop at ``index`` and renumber the rest from 1.

        Arrival times of the remaining stops are left as generated.
        """
        if not 0 <= index < len(self.stops):
            raise IndexError(f"No stop at index {index}")
        del self.stops[index]
        for i, stop in enumerate(self.stops):
            stop.order = i + 1


class ItineraryRequest(BaseModel):
    budget: Budget = Budget.mid
    stops: int = Field(default=3, ge=2, le=5)
    cuisine: str | None = None
    start: Coordinate | None = None


class ItineraryResponse(BaseModel):
    stops: list[ItineraryStop]
    total_budget: float
    total_wait: int

    @classmethod
    def from_itinerary(cls, itinerary: Itinerary) -> "ItineraryResponse":
        return cls(
            stops=itinerary.stops,
            total_budget=itinerary.total_budget,
            total_wait=itinerary.total_wait,
        )
