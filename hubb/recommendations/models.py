from __future__ import annotations

from pydantic import BaseModel, Field

from ..catalog.models import Venue


class RankedResult(BaseModel):
    venue: Venue
    score: float


class RecommendationRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)


class RecommendationResponse(BaseModel):
    results: list[RankedResult]
    total_candidates: int
    fallback: bool = False
    parsed_intent: dict = Field(default_factory=dict)
