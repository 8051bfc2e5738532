from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable

from pydantic import BaseModel, Field

from ..geo.coords import (
    BANGKOK_REGION,
    FALLBACK_ANCHOR,
    Coordinate,
    ServiceRegion,
    normalize_position,
)

logger = logging.getLogger(__name__)


class PositionErrorCode(str, Enum):
    permission_denied = "permission_denied"
    unavailable = "unavailable"
    timeout = "timeout"


ERROR_NOTICES: dict[PositionErrorCode, str] = {
    PositionErrorCode.permission_denied: "Location permission denied",
    PositionErrorCode.unavailable: "Location unavailable",
    PositionErrorCode.timeout: "Location request timed out",
}


class PositionFix(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    accuracy: float | None = Field(default=None, ge=0.0)
    heading: float | None = None
    speed: float | None = None


class PositionReport(BaseModel):
    """What the client posts: either a fix or an error code."""

    fix: PositionFix | None = None
    error: PositionErrorCode | None = None


class PositionState(BaseModel):
    position: Coordinate | None = None
    accuracy: float | None = None
    notice: str | None = None
    is_tracking: bool = False


PositionCallback = Callable[[Coordinate], None]


class PositionProvider:
    """Latest known position plus one shared watch subscription."""

    def __init__(
        self,
        region: ServiceRegion = BANGKOK_REGION,
        anchor: Coordinate = FALLBACK_ANCHOR,
    ) -> None:
        self.region = region
        self.anchor = anchor
        self.state = PositionState()
        self._callback: PositionCallback | None = None
        self._waiters: list[asyncio.Future] = []

    @property
    def is_tracking(self) -> bool:
        return self._callback is not None

    def watch(self, callback: PositionCallback) -> None:
        """Start the watch. Idempotent: there is at most one subscriber."""
        if self._callback is callback:
            return
        if self._callback is not None:
            logger.debug("Replacing existing position watch")
        self._callback = callback
        self.state.is_tracking = True

    def clear_watch(self) -> None:
        self._callback = None
        self.state.is_tracking = False

    def publish(self, fix: PositionFix) -> Coordinate:
        position, notice = normalize_position(
            Coordinate(lat=fix.lat, lng=fix.lng), self.region, self.anchor,
        )
        self.state.position = position
        self.state.accuracy = fix.accuracy
        self.state.notice = notice
        self._deliver(position)
        return position

    def publish_error(self, code: PositionErrorCode) -> Coordinate:
        notice = ERROR_NOTICES[code]
        logger.info("Position error: %s", notice)
        self.state.notice = notice
        if self.state.position is None:
            self.state.position = self.anchor
        self._resolve_waiters(self.state.position)
        return self.state.position

    def report(self, report: PositionReport) -> Coordinate:
        if report.fix is not None:
            return self.publish(report.fix)
        return self.publish_error(report.error or PositionErrorCode.unavailable)

    async def get_current_position(self, timeout: float = 10.0) -> Coordinate:
        """Wait for the next fix; fall back to the anchor on timeout."""
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future = loop.create_future()
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError:
            return self.publish_error(PositionErrorCode.timeout)
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    def _deliver(self, position: Coordinate) -> None:
        self._resolve_waiters(position)
        if self._callback is not None:
            self._callback(position)

    def _resolve_waiters(self, position: Coordinate) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(position)
