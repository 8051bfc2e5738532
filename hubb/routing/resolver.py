from __future__ import annotations

import asyncio
import logging

from ..geo.coords import Coordinate
from .cache import cache_get, cache_set
from .maneuvers import describe
from .models import RawRoute, RouteError, RouteInfo, RouteStep, TransportMode
from .osrm import OSRMRoutingService, RoutingService
from .transit import WALKING_SPEED_MPS, synthesize_transit_route

logger = logging.getLogger(__name__)

OSRM_PROFILES: dict[TransportMode, str] = {
    TransportMode.walk: "foot",
    TransportMode.drive: "driving",
}


class RouteResolver:
    def __init__(self, service: RoutingService | None = None, use_cache: bool = True) -> None:
        self.service = service or OSRMRoutingService()
        self.use_cache = use_cache

    async def resolve(
        self, origin: Coordinate, destination: Coordinate, mode: TransportMode,
    ) -> RouteInfo:
        """Resolve a route for one transport mode.

        Raises:
            RouteError: when no route exists or the routing service fails
        """
        if self.use_cache:
            cached = cache_get(origin, destination, mode)
            if cached is not None:
                return cached

        if mode == TransportMode.transit:
            route = synthesize_transit_route(origin, destination)
        else:
            raw = await self.service.fetch(origin, destination, OSRM_PROFILES[mode])
            if raw is None or not raw.geometry:
                raise RouteError("No route found", not_found=True)
            route = self._from_raw(raw, mode)

        if self.use_cache:
            cache_set(origin, destination, mode, route)
        return route

    async def resolve_all(
        self, origin: Coordinate, destination: Coordinate,
    ) -> dict[TransportMode, RouteInfo | None]:
        """Resolve every mode concurrently; a failed mode maps to ``None``."""
        modes = list(TransportMode)
        results = await asyncio.gather(
            *(self.resolve(origin, destination, m) for m in modes),
            return_exceptions=True,
        )
        routes: dict[TransportMode, RouteInfo | None] = {}
        for mode, result in zip(modes, results):
            if isinstance(result, RouteError):
                logger.info("No %s route: %s", mode.value, result)
                routes[mode] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                routes[mode] = result
        return routes

    @staticmethod
    def _from_raw(raw: RawRoute, mode: TransportMode) -> RouteInfo:
        walking = mode == TransportMode.walk
        kind = "walk" if walking else "drive"

        steps: list[RouteStep] = []
        for m in raw.maneuvers:
            duration = m.distance / WALKING_SPEED_MPS if walking else m.duration
            steps.append(RouteStep(
                instruction=describe(m.type, m.modifier, m.road),
                distance=m.distance,
                duration=duration,
                kind=m.type if m.type in ("depart", "arrive") else kind,
            ))

        # Walking time comes from a fixed pedestrian pace, not the service estimate.
        duration = raw.distance / WALKING_SPEED_MPS if walking else raw.duration

        return RouteInfo(
            mode=mode,
            distance=raw.distance,
            duration=duration,
            geometry=raw.geometry,
            steps=steps,
        )
