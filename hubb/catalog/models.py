from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from ..geo.coords import Coordinate


class PriceTier(str, Enum):
    low = "low"
    mid = "mid"
    high = "high"

    @property
    def symbol(self) -> str:
        return _TIER_SYMBOLS[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> "PriceTier":
        for tier, sym in _TIER_SYMBOLS.items():
            if sym == symbol.strip():
                return tier
        raise ValueError(f"Unknown price tier symbol: {symbol!r}")


_TIER_SYMBOLS: dict[PriceTier, str] = {
    PriceTier.low: "฿",
    PriceTier.mid: "฿฿",
    PriceTier.high: "฿฿฿",
}


class Venue(BaseModel):
    id: str
    name: str
    cuisine: str
    rating: float = Field(..., ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0)
    location: Coordinate
    price_tier: PriceTier
    price_min: float = Field(default=0.0, ge=0.0)
    price_max: float = Field(default=0.0, ge=0.0)
    wait_minutes: int = Field(default=0, ge=0)
    total_seats: int = Field(..., ge=1)
    available_seats: int = Field(..., ge=0)
    known_for: list[str] = Field(default_factory=list)
    description: str = ""
    open_hours: str = ""
    address: str = ""
    distance_meters: float = Field(default=0.0, ge=0.0)

    @model_validator(mode="after")
    def _check_seats(self) -> "Venue":
        if self.available_seats > self.total_seats:
            raise ValueError("available_seats cannot exceed total_seats")
        return self

    @property
    def baht_tier(self) -> str:
        return self.price_tier.symbol


class Landmark(BaseModel):
    id: str
    name: str
    category: str
    description: str = ""
    rating: float = Field(..., ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0)
    location: Coordinate
    address: str = ""
    best_time_to_visit: str = ""
    estimated_visit_time: str = ""
    instagram_hashtag: str = ""
