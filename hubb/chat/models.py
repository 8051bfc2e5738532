from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from ..recommendations.models import RankedResult


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Intent
# ---------------------------------------------------------------------------


class PricePreference(str, Enum):
    cheap = "cheap"
    moderate = "moderate"
    premium = "premium"


class WaitTolerance(str, Enum):
    none = "none"
    short = "short"


class TimeOfDay(str, Enum):
    late = "late"


class Intent(BaseModel):
    price: PricePreference | None = None
    cuisines: list[str] = Field(default_factory=list)
    wait: WaitTolerance | None = None
    time_of_day: TimeOfDay | None = None
    spicy: bool = False
    seafood: bool = False
    group: bool = False

    def is_empty(self) -> bool:
        return self == Intent()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class ChatMode(str, Enum):
    chat = "chat"
    itinerary = "itinerary"
    landmark = "landmark"
    polaroid = "polaroid"


class Message(BaseModel):
    id: str = Field(default_factory=_new_id)
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=_now)
    results: list[RankedResult] = Field(default_factory=list)


DEFAULT_TITLE = "New Chat"


class ChatSession(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str = DEFAULT_TITLE
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    mode: ChatMode = ChatMode.chat


# ---------------------------------------------------------------------------
# API bodies
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000)


class ChatResponseType(str, Enum):
    results = "results"
    canned = "canned"
    completion = "completion"
    fallback = "fallback"


class ChatResponse(BaseModel):
    type: ChatResponseType
    session_id: str
    message: Message | None = None
    parsed_intent: Intent | None = None


class CreateSessionRequest(BaseModel):
    mode: ChatMode = ChatMode.chat


class SwitchModeRequest(BaseModel):
    mode: ChatMode


class SessionSummary(BaseModel):
    id: str
    title: str
    mode: ChatMode
    message_count: int
    updated_at: datetime
    active: bool = False
