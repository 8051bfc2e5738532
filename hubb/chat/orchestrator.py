from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timezone

from ..catalog.browse import search_landmarks
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import CompletionError, complete
from ..recommendations.ranker import rank_venues, top_rated
from .intent import extract_intent, is_restaurant_query
from .models import (
    DEFAULT_TITLE,
    ChatMode,
    ChatResponse,
    ChatResponseType,
    ChatSession,
    Intent,
    Message,
    SessionSummary,
)

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 30
TITLE_MESSAGE_LIMIT = 3
_HISTORY_TURNS = 10

WELCOME_MESSAGES: dict[ChatMode, str] = {
    ChatMode.chat: (
        "Sawasdee! I'm Hubb, your Bantadthong food guide. Ask me for cheap eats, "
        "spicy dishes, late-night spots or places with no wait."
    ),
    ChatMode.itinerary: "Tell me your budget and how many stops you'd like, and I'll plan a food tour.",
    ChatMode.landmark: "Looking for photo spots? Ask me about landmarks around Bantadthong.",
    ChatMode.polaroid: "Upload a photo and I'll turn it into a Bantadthong polaroid keepsake.",
}

LANDMARK_KEYWORDS = ["photo", "landmark", "instagram", "picture", "sightseeing", "temple", "museum"]
ITINERARY_KEYWORDS = ["plan", "itinerary", "food tour", "day trip", "schedule"]
_ITINERARY_RE = re.compile(r"\b(?:" + "|".join(re.escape(kw) for kw in ITINERARY_KEYWORDS) + ")")
MAP_KEYWORDS = ["map", "route", "direction", "navigate", "how do i get", "where is"]

APOLOGY_REPLY = (
    "Sorry, I couldn't come up with an answer just now. "
    "Try asking about restaurants, landmarks, or planning a food tour."
)
ITINERARY_REPLY = (
    "Let's plan a food tour! Switch to itinerary mode, pick a budget and "
    "2 to 5 stops, and I'll order them into a walking route starting at 11:00."
)
MAP_REPLY = (
    "Open the map and pick a restaurant, then tap Route. I can give you "
    "walking, driving and transit directions from where you are."
)


def _contains_any(text: str, keywords: list[str]) -> bool:
    return any(kw in text for kw in keywords)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ConversationOrchestrator:
    """Owns the chat sessions and the active-session pointer for one client."""

    def __init__(self, llm_config: LLMConfig = DEFAULT_LLM_CONFIG) -> None:
        self.llm_config = llm_config
        self._sessions: list[ChatSession] = []
        self._locks: dict[str, asyncio.Lock] = {}
        self.active_session_id: str | None = None
        self.mode: ChatMode = ChatMode.chat

    # -- queries -------------------------------------------------------------

    @property
    def current_session(self) -> ChatSession | None:
        return self.get_session(self.active_session_id) if self.active_session_id else None

    def get_session(self, session_id: str) -> ChatSession | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def list_sessions(self) -> list[ChatSession]:
        return list(self._sessions)

    def summaries(self) -> list[SessionSummary]:
        return [
            SessionSummary(
                id=s.id,
                title=s.title,
                mode=s.mode,
                message_count=len(s.messages),
                updated_at=s.updated_at,
                active=s.id == self.active_session_id,
            )
            for s in self._sessions
        ]

    # -- commands ------------------------------------------------------------

    def create_session(self, mode: ChatMode = ChatMode.chat) -> ChatSession:
        session = ChatSession(
            mode=mode,
            messages=[Message(role="assistant", content=WELCOME_MESSAGES[mode])],
        )
        self._sessions.insert(0, session)
        self._locks[session.id] = asyncio.Lock()
        self.active_session_id = session.id
        self.mode = mode
        return session

    def switch_session(self, session_id: str) -> ChatSession:
        session = self.get_session(session_id)
        if session is None:
            raise KeyError(session_id)
        self.active_session_id = session.id
        self.mode = session.mode
        return session

    def switch_mode(self, mode: ChatMode) -> None:
        self.mode = mode
        session = self.current_session
        if session is not None:
            session.mode = mode

    def delete_session(self, session_id: str) -> None:
        session = self.get_session(session_id)
        if session is None:
            raise KeyError(session_id)
        self._sessions.remove(session)
        self._locks.pop(session_id, None)
        if self.active_session_id == session_id:
            self.active_session_id = self._sessions[0].id if self._sessions else None

    async def send(self, content: str) -> ChatResponse:
        session = self.current_session or self.create_session(self.mode)
        lock = self._locks.setdefault(session.id, asyncio.Lock())

        async with lock:
            self._append_user_message(session, content)
            response_type, reply, intent = await self._reply_for(session, content)

            # The originating session may have been deleted while we awaited.
            if self.get_session(session.id) is not session:
                logger.info("Dropping reply for deleted session %s", session.id)
                return ChatResponse(type=response_type, session_id=session.id, parsed_intent=intent)

            session.messages.append(reply)
            session.updated_at = _now()

        return ChatResponse(
            type=response_type,
            session_id=session.id,
            message=reply,
            parsed_intent=intent,
        )

    # -- internals -----------------------------------------------------------

    @staticmethod
    def _append_user_message(session: ChatSession, content: str) -> None:
        if session.title == DEFAULT_TITLE and len(session.messages) <= TITLE_MESSAGE_LIMIT:
            title = content[:TITLE_MAX_CHARS]
            session.title = title + ("..." if len(content) > TITLE_MAX_CHARS else "")
        session.messages.append(Message(role="user", content=content))
        session.updated_at = _now()

    async def _reply_for(
        self, session: ChatSession, content: str,
    ) -> tuple[ChatResponseType, Message, Intent | None]:
        lower = content.lower()
        intent = extract_intent(lower)

        # "plan a food tour" is a planning request even though it mentions food
        if _ITINERARY_RE.search(lower):
            return ChatResponseType.canned, Message(role="assistant", content=ITINERARY_REPLY), None
        if is_restaurant_query(lower, intent):
            return ChatResponseType.results, self._restaurant_reply(intent), intent

        if _contains_any(lower, LANDMARK_KEYWORDS):
            return ChatResponseType.canned, Message(role="assistant", content=self._landmark_text()), None
        if _contains_any(lower, MAP_KEYWORDS):
            return ChatResponseType.canned, Message(role="assistant", content=MAP_REPLY), None

        turns = [
            {"role": m.role, "content": m.content}
            for m in session.messages[-_HISTORY_TURNS:]
        ]
        try:
            text = await complete(turns, config=self.llm_config)
        except CompletionError:
            logger.warning("Completion failed for session %s, using apology", session.id)
            return ChatResponseType.fallback, Message(role="assistant", content=APOLOGY_REPLY), None
        return ChatResponseType.completion, Message(role="assistant", content=text), None

    @staticmethod
    def _restaurant_reply(intent: Intent) -> Message:
        results = rank_venues(intent)
        if not results:
            results = top_rated()
            text = (
                "I couldn't find a place matching all of that, "
                "but these are the best-rated spots around Bantadthong:"
            )
        elif intent.wait is not None:
            text = f"Here are {len(results)} places where you won't queue long:"
        elif intent.time_of_day is not None:
            text = f"Here are {len(results)} spots that stay open late:"
        elif intent.price is not None:
            text = f"Found {len(results)} {intent.price.value} picks for you:"
        else:
            text = f"Here are {len(results)} restaurants you might enjoy:"
        return Message(role="assistant", content=text, results=results)

    @staticmethod
    def _landmark_text() -> str:
        top = search_landmarks(sort_by="rating")[:3]
        names = ", ".join(lm.name for lm in top)
        return (
            f"Great photo spots nearby include {names}. "
            "Open landmark mode to browse them all and find the best time to visit."
        )
