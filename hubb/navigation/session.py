from __future__ import annotations

import asyncio
import logging
import math
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from ..geo.coords import Coordinate, haversine_m, path_length_m
from ..routing.models import RouteInfo, RouteRequest, TransportMode
from .position import PositionProvider

logger = logging.getLogger(__name__)

ARRIVAL_RADIUS_M = 30.0

TICK_INTERVALS: dict[TransportMode, float] = {
    TransportMode.walk: 1.0,
    TransportMode.drive: 0.3,
    TransportMode.transit: 0.3,
}

ARRIVAL_MESSAGE = "You have arrived at your destination!"


class NavigationError(Exception):
    """Illegal navigation transition."""


class NavigationStatus(str, Enum):
    idle = "idle"
    active = "active"
    paused = "paused"
    arrived = "arrived"


class NavigationEvent(BaseModel):
    type: str
    step_index: int
    position: Coordinate | None = None
    message: str | None = None


class NavigationSnapshot(BaseModel):
    status: NavigationStatus
    mode: TransportMode | None = None
    step_index: int
    step_count: int
    coord_index: int
    position: Coordinate | None = None
    live: bool = False
    remaining_meters: float = 0.0
    current_instruction: str | None = None


Listener = Callable[[NavigationEvent], None]


class NavigationSession:
    """Replays or live-tracks progress along one resolved route.

    Idle -> Active <-> Paused -> Arrived; ``reset`` returns to Idle from
    anywhere. Simulated progress moves one geometry coordinate per tick;
    live progress comes from position updates and only checks arrival.
    The progress source chosen at start survives pause and reset, so
    ``resume`` continues the same way.
    """

    def __init__(
        self,
        route: RouteInfo | None = None,
        tick_intervals: dict[TransportMode, float] | None = None,
        arrival_radius_m: float = ARRIVAL_RADIUS_M,
    ) -> None:
        self.route = route
        self.tick_intervals = tick_intervals or TICK_INTERVALS
        self.arrival_radius_m = arrival_radius_m
        self.status = NavigationStatus.idle
        self.step_index = 0
        self.coord_index = 0
        self.position: Coordinate | None = None
        self.simulated = True
        self.events: list[NavigationEvent] = []
        self._listeners: list[Listener] = []
        self._task: asyncio.Task | None = None
        self._provider: PositionProvider | None = None

    # -- listeners -----------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def _emit(self, event_type: str, message: str | None = None) -> None:
        event = NavigationEvent(
            type=event_type,
            step_index=self.step_index,
            position=self.position,
            message=message,
        )
        self.events.append(event)
        for listener in list(self._listeners):
            listener(event)

    # -- transitions ---------------------------------------------------------

    def start(self, route: RouteInfo | None = None) -> None:
        if route is not None:
            if self.status == NavigationStatus.paused:
                raise NavigationError("Reset before starting a different route")
            self.route = route
        if self.route is None:
            raise NavigationError("No route to navigate")
        if self.status == NavigationStatus.active:
            return
        if self.status == NavigationStatus.arrived:
            raise NavigationError("Navigation already finished; reset first")

        if self.status == NavigationStatus.idle:
            self.step_index = 0
            self.coord_index = 0
            self.position = self.route.geometry[0]
        self.status = NavigationStatus.active
        self._emit("started")

    def pause(self) -> None:
        if self.status != NavigationStatus.active:
            raise NavigationError(f"Cannot pause while {self.status.value}")
        self._cancel_task()
        self.status = NavigationStatus.paused
        self._emit("paused")

    def reset(self) -> None:
        self.stop()
        self.status = NavigationStatus.idle
        self.step_index = 0
        self.coord_index = 0
        self.position = None
        self._emit("reset")

    # -- simulated mode ------------------------------------------------------

    def advance(self) -> bool:
        """Move the simulated cursor one coordinate. Returns False once inactive."""
        if self.status != NavigationStatus.active or self.route is None:
            return False

        geometry = self.route.geometry
        self.coord_index += 1
        if self.coord_index >= len(geometry):
            self.coord_index = len(geometry) - 1
            self.position = geometry[-1]
            self._arrive()
            return False

        self.position = geometry[self.coord_index]
        step_count = len(self.route.steps)
        if step_count:
            step = min(math.floor(self.coord_index / len(geometry) * step_count), step_count - 1)
            if step > self.step_index:
                self.step_index = step
                self._emit("step_advanced", self.route.steps[step].instruction)
        self._emit("position")
        return True

    async def run_simulation(self) -> None:
        interval = self.tick_intervals[self.route.mode] if self.route else 1.0
        while self.status == NavigationStatus.active:
            await asyncio.sleep(interval)
            if not self.advance():
                break

    def start_simulation(self) -> asyncio.Task:
        """Start (or resume) and drive ``advance`` from a timer task."""
        self.start()
        self.simulated = True
        self._release_provider()
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run_simulation())
        return self._task

    # -- live mode -----------------------------------------------------------

    def update_position(self, position: Coordinate) -> None:
        if self.status != NavigationStatus.active or self.route is None:
            return
        self.position = position
        self._emit("position")
        if haversine_m(position, self.route.destination) <= self.arrival_radius_m:
            self._arrive()

    def track(self, provider: PositionProvider) -> None:
        """Follow live fixes from ``provider`` instead of a timer."""
        self.start()
        self.simulated = False
        self._cancel_task()
        self._provider = provider
        provider.watch(self.update_position)

    @property
    def live(self) -> bool:
        return not self.simulated

    @property
    def tracking(self) -> bool:
        return self._provider is not None

    def resume(self, provider: PositionProvider | None = None) -> None:
        """Continue from Idle or Paused with the progress source used at start.

        Raises:
            NavigationError: live navigation without a provider to follow
        """
        if self.simulated:
            self.start_simulation()
        elif provider is not None:
            self.track(provider)
        else:
            raise NavigationError("Live navigation needs a position provider")

    def remaining_meters(self) -> float:
        if self.route is None or self.status == NavigationStatus.arrived:
            return 0.0
        if self.simulated or self.position is None:
            return path_length_m(self.route.geometry[self.coord_index:])
        return haversine_m(self.position, self.route.destination)

    # -- lifecycle -----------------------------------------------------------

    def _arrive(self) -> None:
        if self.status == NavigationStatus.arrived:
            return
        self.status = NavigationStatus.arrived
        if self.route is not None and self.route.steps:
            self.step_index = len(self.route.steps) - 1
        self._release_provider()
        self._emit("arrived", ARRIVAL_MESSAGE)
        logger.info("Navigation arrived")

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    def _release_provider(self) -> None:
        if self._provider is not None:
            self._provider.clear_watch()
            self._provider = None

    def stop(self) -> None:
        """Stop the tick timer and the position watch. Safe to call repeatedly."""
        self._cancel_task()
        self._release_provider()

    def snapshot(self) -> NavigationSnapshot:
        instruction = None
        if self.route is not None and self.route.steps:
            instruction = self.route.steps[self.step_index].instruction
        return NavigationSnapshot(
            status=self.status,
            mode=self.route.mode if self.route else None,
            step_index=self.step_index,
            step_count=len(self.route.steps) if self.route else 0,
            coord_index=self.coord_index,
            position=self.position,
            live=self.live,
            remaining_meters=round(self.remaining_meters(), 1),
            current_instruction=instruction,
        )


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class NavigationStartRequest(RouteRequest):
    simulate: bool = True
