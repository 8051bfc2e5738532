from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.middleware.sessions import SessionMiddleware

from .catalog.browse import LANDMARK_CATEGORIES, SortKey, cuisine_options, search_landmarks
from .catalog.data_store import get_venue, get_venues
from .catalog.models import Landmark, Venue
from .chat.intent import extract_intent
from .chat.models import (
    ChatMode,
    ChatRequest,
    ChatResponse,
    ChatSession,
    CreateSessionRequest,
    SessionSummary,
    SwitchModeRequest,
)
from .chat.orchestrator import ConversationOrchestrator
from .config import DEFAULT_APP_CONFIG
from .geo.coords import Coordinate
from .itinerary.models import Itinerary, ItineraryRequest, ItineraryResponse
from .itinerary.planner import plan_itinerary
from .llm.groq_client import CompletionError, generate_trip_plan
from .llm.models import TripPlanRequest, TripPlanResponse
from .logging_config import configure_logging
from .navigation.position import PositionFix, PositionProvider, PositionReport, PositionState
from .navigation.session import (
    ARRIVAL_MESSAGE,
    NavigationError,
    NavigationEvent,
    NavigationSession,
    NavigationSnapshot,
    NavigationStartRequest,
)
from .notifications.feed import NotificationFeed, arrival_notification
from .notifications.models import NotificationFeedState
from .recommendations.models import RecommendationRequest, RecommendationResponse
from .recommendations.ranker import count_candidates, rank_venues, top_rated
from .routing.cache import get_cache_stats
from .routing.models import RouteError, RouteInfo, RouteRequest, TransportMode
from .routing.resolver import RouteResolver

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Hubb Bantadthong Guide API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_APP_CONFIG.session_secret)

_resolver = RouteResolver()

CLIENT_TTL = DEFAULT_APP_CONFIG.client_ttl
MAX_CLIENTS = DEFAULT_APP_CONFIG.max_clients


# ── Per-client state ─────────────────────────────────────────────────────


@dataclass
class ClientState:
    orchestrator: ConversationOrchestrator = field(default_factory=ConversationOrchestrator)
    position: PositionProvider = field(default_factory=PositionProvider)
    notifications: NotificationFeed = field(default_factory=NotificationFeed)
    route: RouteInfo | None = None
    navigation: NavigationSession | None = None
    destination_name: str = "your destination"
    itinerary: Itinerary | None = None
    last_seen: float = field(default_factory=time.time)

    def close_map_view(self) -> None:
        if self.navigation is not None:
            self.navigation.stop()
            self.navigation = None
        self.position.clear_watch()

    def close(self) -> None:
        self.close_map_view()
        self.notifications.stop()

    def announce(self, event: NavigationEvent) -> None:
        if event.type == "arrived":
            self.notifications.push(
                arrival_notification(self.destination_name, event.message or ARRIVAL_MESSAGE),
            )


# Least recently seen first.
_clients: dict[str, ClientState] = {}


def _evict_clients(now: float) -> None:
    while _clients:
        oldest_id = next(iter(_clients))
        if len(_clients) <= MAX_CLIENTS and now - _clients[oldest_id].last_seen < CLIENT_TTL:
            break
        logger.info("Evicting client state %s", oldest_id)
        _clients.pop(oldest_id).close()


def get_client(request: Request) -> ClientState:
    now = time.time()
    client_id = request.session.get("client_id")
    state = _clients.pop(client_id, None) if client_id else None
    if state is None or now - state.last_seen >= CLIENT_TTL:
        if state is not None:
            state.close()
        client_id = client_id or uuid.uuid4().hex
        request.session["client_id"] = client_id
        state = ClientState()
    state.last_seen = now
    _clients[client_id] = state
    _evict_clients(now)
    return state


def _route_http_error(exc: RouteError) -> HTTPException:
    message = "No route found." if exc.not_found else "Routing service unavailable."
    if exc.retryable:
        message += " Please try again."
    return HTTPException(
        status_code=404 if exc.not_found else 502,
        detail={"message": message, "retryable": exc.retryable},
    )


def _endpoints(body: RouteRequest, client: ClientState) -> tuple[Coordinate, Coordinate]:
    origin = body.origin or client.position.state.position or client.position.anchor
    if body.destination is not None:
        return origin, body.destination
    if body.venue_id:
        venue = get_venue(body.venue_id)
        if venue is None:
            raise HTTPException(status_code=404, detail="Venue not found")
        return origin, venue.location
    raise HTTPException(status_code=422, detail="Either destination or venue_id is required")


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {
        "cuisines": cuisine_options(),
        "landmark_categories": LANDMARK_CATEGORIES,
        "transport_modes": [m.value for m in TransportMode],
        "chat_modes": [m.value for m in ChatMode],
    }


@app.get("/venues", response_model=list[Venue])
def venues() -> list[Venue]:
    return get_venues()


@app.get("/venues/{venue_id}", response_model=Venue)
def venue_detail(venue_id: str) -> Venue:
    venue = get_venue(venue_id)
    if venue is None:
        raise HTTPException(status_code=404, detail="Venue not found")
    return venue


@app.get("/landmarks", response_model=list[Landmark])
def landmarks(q: str = "", category: str = "All", sort_by: SortKey = "rating") -> list[Landmark]:
    return search_landmarks(q, category, sort_by)


# ── Recommendations & itinerary ──────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(body: RecommendationRequest) -> RecommendationResponse:
    intent = extract_intent(body.query.lower())
    results = rank_venues(intent)
    fallback = not results
    if fallback:
        results = top_rated()
    return RecommendationResponse(
        results=results,
        total_candidates=count_candidates(intent),
        fallback=fallback,
        parsed_intent=intent.model_dump(exclude_defaults=True, mode="json"),
    )


@app.post("/itinerary", response_model=ItineraryResponse)
def itinerary(
    body: ItineraryRequest,
    client: ClientState = Depends(get_client),
) -> ItineraryResponse:
    client.itinerary = plan_itinerary(body.budget, body.stops, body.cuisine, start=body.start)
    return ItineraryResponse.from_itinerary(client.itinerary)


@app.delete("/itinerary/stops/{index}", response_model=ItineraryResponse)
def remove_itinerary_stop(
    index: int,
    client: ClientState = Depends(get_client),
) -> ItineraryResponse:
    if client.itinerary is None:
        raise HTTPException(status_code=404, detail="No itinerary generated yet")
    try:
        client.itinerary.remove_stop(index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Stop not found")
    return ItineraryResponse.from_itinerary(client.itinerary)


@app.post("/itinerary/generate", response_model=TripPlanResponse)
async def generate_itinerary(body: TripPlanRequest) -> TripPlanResponse:
    try:
        plan = await generate_trip_plan(body.location, body.days, body.preferences)
    except CompletionError as exc:
        logger.warning("Trip plan generation failed: %s", exc)
        raise HTTPException(status_code=502, detail="Could not generate an itinerary right now.")
    return TripPlanResponse(plan=plan)


# ── Chat ─────────────────────────────────────────────────────────────────


@app.get("/chat/sessions", response_model=list[SessionSummary])
def list_sessions(client: ClientState = Depends(get_client)) -> list[SessionSummary]:
    return client.orchestrator.summaries()


@app.post("/chat/sessions", response_model=ChatSession)
def create_session(
    body: CreateSessionRequest,
    client: ClientState = Depends(get_client),
) -> ChatSession:
    session = client.orchestrator.create_session(body.mode)
    client.close_map_view()
    return session


@app.get("/chat/sessions/{session_id}", response_model=ChatSession)
def session_detail(session_id: str, client: ClientState = Depends(get_client)) -> ChatSession:
    session = client.orchestrator.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@app.post("/chat/sessions/{session_id}/switch", response_model=ChatSession)
def switch_session(session_id: str, client: ClientState = Depends(get_client)) -> ChatSession:
    try:
        session = client.orchestrator.switch_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")
    client.close_map_view()
    return session


@app.delete("/chat/sessions/{session_id}")
def delete_session(session_id: str, client: ClientState = Depends(get_client)) -> dict:
    was_active = client.orchestrator.active_session_id == session_id
    try:
        client.orchestrator.delete_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")
    if was_active:
        client.close_map_view()
    return {"status": "deleted", "active_session_id": client.orchestrator.active_session_id}


@app.post("/chat/mode")
def switch_mode(body: SwitchModeRequest, client: ClientState = Depends(get_client)) -> dict:
    client.orchestrator.switch_mode(body.mode)
    return {"mode": client.orchestrator.mode.value}


@app.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, client: ClientState = Depends(get_client)) -> ChatResponse:
    if client.orchestrator.current_session is None:
        # send() is about to create and activate a session
        client.close_map_view()
    return await client.orchestrator.send(body.message)


# ── Position ─────────────────────────────────────────────────────────────


@app.post("/position", response_model=PositionState)
def report_position(
    body: PositionReport,
    client: ClientState = Depends(get_client),
) -> PositionState:
    if body.fix is None and body.error is None:
        raise HTTPException(status_code=422, detail="Provide a fix or an error code")
    client.position.report(body)
    return client.position.state


# ── Routes ───────────────────────────────────────────────────────────────


@app.post("/routes", response_model=RouteInfo)
async def route(body: RouteRequest, client: ClientState = Depends(get_client)) -> RouteInfo:
    origin, destination = _endpoints(body, client)
    try:
        client.route = await _resolver.resolve(origin, destination, body.mode)
    except RouteError as exc:
        client.route = None
        client.close_map_view()
        raise _route_http_error(exc)
    return client.route


@app.post("/routes/all")
async def all_routes(body: RouteRequest, client: ClientState = Depends(get_client)) -> dict:
    origin, destination = _endpoints(body, client)
    routes = await _resolver.resolve_all(origin, destination)
    return {mode.value: r.model_dump(mode="json") if r else None for mode, r in routes.items()}


@app.get("/routes/cache/stats")
def route_cache_stats() -> dict:
    return get_cache_stats()


# ── Navigation ───────────────────────────────────────────────────────────


def _require_navigation(client: ClientState) -> NavigationSession:
    if client.navigation is None:
        raise HTTPException(status_code=404, detail="Navigation has not been started")
    return client.navigation


@app.post("/navigation/start", response_model=NavigationSnapshot)
async def navigation_start(
    body: NavigationStartRequest,
    client: ClientState = Depends(get_client),
) -> NavigationSnapshot:
    origin, destination = _endpoints(body, client)
    try:
        client.route = await _resolver.resolve(origin, destination, body.mode)
    except RouteError as exc:
        client.route = None
        client.close_map_view()
        raise _route_http_error(exc)

    client.close_map_view()
    venue = get_venue(body.venue_id) if body.venue_id and body.destination is None else None
    client.destination_name = venue.name if venue else "your destination"
    navigation = NavigationSession(client.route)
    navigation.subscribe(client.announce)
    client.navigation = navigation
    if body.simulate:
        navigation.start_simulation()
    else:
        navigation.track(client.position)
    return navigation.snapshot()


@app.post("/navigation/resume", response_model=NavigationSnapshot)
async def navigation_resume(client: ClientState = Depends(get_client)) -> NavigationSnapshot:
    navigation = _require_navigation(client)
    try:
        navigation.resume(client.position)
    except NavigationError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return navigation.snapshot()


@app.post("/navigation/pause", response_model=NavigationSnapshot)
def navigation_pause(client: ClientState = Depends(get_client)) -> NavigationSnapshot:
    navigation = _require_navigation(client)
    try:
        navigation.pause()
    except NavigationError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return navigation.snapshot()


@app.post("/navigation/reset", response_model=NavigationSnapshot)
def navigation_reset(client: ClientState = Depends(get_client)) -> NavigationSnapshot:
    navigation = _require_navigation(client)
    navigation.reset()
    return navigation.snapshot()


@app.post("/navigation/position", response_model=NavigationSnapshot)
def navigation_position(
    body: PositionFix,
    client: ClientState = Depends(get_client),
) -> NavigationSnapshot:
    navigation = _require_navigation(client)
    position = client.position.publish(body)
    if not navigation.tracking:
        navigation.update_position(position)
    return navigation.snapshot()


@app.get("/navigation", response_model=NavigationSnapshot)
def navigation_state(client: ClientState = Depends(get_client)) -> NavigationSnapshot:
    return _require_navigation(client).snapshot()


@app.get("/navigation/events")
def navigation_events(client: ClientState = Depends(get_client)) -> list[dict]:
    return [e.model_dump(mode="json") for e in _require_navigation(client).events]


@app.delete("/navigation")
def navigation_close(client: ClientState = Depends(get_client)) -> dict:
    client.close_map_view()
    return {"status": "closed"}


# ── Notifications ────────────────────────────────────────────────────────


@app.get("/notifications", response_model=NotificationFeedState)
def notifications(client: ClientState = Depends(get_client)) -> NotificationFeedState:
    return client.notifications.state()


@app.post("/notifications/start", response_model=NotificationFeedState)
async def notifications_start(client: ClientState = Depends(get_client)) -> NotificationFeedState:
    client.notifications.start()
    return client.notifications.state()


@app.delete("/notifications")
def notifications_stop(client: ClientState = Depends(get_client)) -> dict:
    client.notifications.stop()
    return {"status": "stopped"}
