from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, computed_field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationType(str, Enum):
    review = "review"
    visit = "visit"
    recommendation = "recommendation"
    arrival = "arrival"


def format_time_ago(timestamp: datetime, now: datetime | None = None) -> str:
    minutes = int(((now or _now()) - timestamp).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes == 1:
        return "1 min ago"
    return f"{minutes} mins ago"


class LiveNotification(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: NotificationType
    user_name: str
    restaurant_name: str
    venue_id: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = None
    timestamp: datetime = Field(default_factory=_now)

    @computed_field
    @property
    def text(self) -> str:
        if self.type == NotificationType.review:
            return f"{self.user_name} left a review at {self.restaurant_name}"
        if self.type == NotificationType.recommendation:
            return f"{self.user_name} recommends {self.restaurant_name}"
        if self.type == NotificationType.arrival:
            return self.comment or f"You have arrived at {self.restaurant_name}"
        return f"{self.user_name} just visited {self.restaurant_name}"

    @computed_field
    @property
    def time_ago(self) -> str:
        return format_time_ago(self.timestamp)


class NotificationFeedState(BaseModel):
    running: bool
    current: LiveNotification | None = None
    notifications: list[LiveNotification] = Field(default_factory=list)
