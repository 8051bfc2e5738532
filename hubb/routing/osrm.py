"""OSRM routing-service client (https://project-osrm.org/docs/v5.24.0/api/)."""
from __future__ import annotations

import logging
from typing import Protocol

import httpx

from ..config import DEFAULT_APP_CONFIG, AppConfig
from ..geo.coords import Coordinate
from .models import Maneuver, RawRoute, RouteError

logger = logging.getLogger(__name__)


class RoutingService(Protocol):
    async def fetch(
        self, origin: Coordinate, destination: Coordinate, profile: str,
    ) -> RawRoute | None:
        ...


def _parse_route(route: dict) -> RawRoute:
    # OSRM GeoJSON geometry is [lng, lat]; this is the only place it is read.
    coords = [
        Coordinate(lat=float(lat), lng=float(lng))
        for lng, lat in route["geometry"]["coordinates"]
    ]

    maneuvers: list[Maneuver] = []
    for leg in route.get("legs", []):
        for step in leg.get("steps", []):
            m = step.get("maneuver", {})
            maneuvers.append(Maneuver(
                type=m.get("type", ""),
                modifier=m.get("modifier"),
                road=step.get("name", "") or "",
                distance=float(step.get("distance", 0.0)),
                duration=float(step.get("duration", 0.0)),
            ))

    return RawRoute(
        distance=float(route["distance"]),
        duration=float(route["duration"]),
        geometry=coords,
        maneuvers=maneuvers,
    )


class OSRMRoutingService:
    def __init__(
        self,
        config: AppConfig = DEFAULT_APP_CONFIG,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = config.osrm_base_url.rstrip("/")
        self.timeout = config.routing_timeout
        self._client = client

    async def fetch(
        self, origin: Coordinate, destination: Coordinate, profile: str,
    ) -> RawRoute | None:
        """Return the first OSRM route, ``None`` when OSRM finds none.

        Raises:
            RouteError: on network, HTTP or payload errors
        """
        url = (
            f"{self.base_url}/route/v1/{profile}/"
            f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        )
        params = {"overview": "full", "geometries": "geojson", "steps": "true"}

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self.timeout)
            close_client = True

        try:
            response = await client.get(url, params=params)
            if response.status_code == 400:
                # OSRM answers NoRoute / NoSegment with a 400 and a code
                data = response.json()
            else:
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("OSRM request failed for %s", profile, exc_info=True)
            raise RouteError(f"Routing service unavailable: {exc}") from exc
        finally:
            if close_client:
                await client.aclose()

        if data.get("code") != "Ok" or not data.get("routes"):
            logger.info("OSRM returned no route (%s)", data.get("code"))
            return None

        try:
            return _parse_route(data["routes"][0])
        except (KeyError, TypeError, ValueError) as exc:
            raise RouteError("Malformed routing response", retryable=False) from exc
