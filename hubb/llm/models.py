from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TripPlanRequest(BaseModel):
    location: str = Field(default="Bantadthong, Bangkok", min_length=1, max_length=200)
    days: int = Field(default=1, ge=1, le=7)
    preferences: str = Field(default="", max_length=500)


class TripPlanResponse(BaseModel):
    plan: dict[str, Any]
