from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Sequence

from ..catalog.data_store import get_venues
from ..catalog.models import Venue
from .models import LiveNotification, NotificationFeedState, NotificationType

logger = logging.getLogger(__name__)

INITIAL_DELAY_S = 3.0
INTERVAL_RANGE_S = (15.0, 25.0)
VISIBLE_FOR_S = 5.0
FEED_SIZE = 10
HISTORY_LIMIT = 20

USER_NAMES = [
    "Ploy", "Nattapong", "Somchai", "Mali", "Kanya",
    "Arthit", "Sarah", "Kenji", "Lukas", "Mei",
]

ARRIVAL_SENDER = "Hubb"


def generate_notifications(
    venues: Sequence[Venue] | None = None,
    count: int = FEED_SIZE,
    rng: random.Random | None = None,
) -> list[LiveNotification]:
    """Build ``count`` activity notifications about catalog venues."""
    venues = list(venues if venues is not None else get_venues())
    if not venues:
        return []
    rng = rng or random.Random()
    kinds = [NotificationType.review, NotificationType.visit, NotificationType.recommendation]

    notifications: list[LiveNotification] = []
    for _ in range(count):
        venue = rng.choice(venues)
        kind = rng.choice(kinds)
        rating = comment = None
        if kind == NotificationType.review:
            rating = min(max(round(venue.rating), 1), 5)
            dish = venue.known_for[0] if venue.known_for else "food"
            comment = f"The {dish} is worth the trip!"
        elif kind == NotificationType.recommendation:
            comment = f"Great {venue.cuisine.lower()} near Bantadthong"
        notifications.append(LiveNotification(
            type=kind,
            user_name=rng.choice(USER_NAMES),
            restaurant_name=venue.name,
            venue_id=venue.id,
            rating=rating,
            comment=comment,
        ))
    return notifications


def arrival_notification(place: str, message: str | None = None) -> LiveNotification:
    return LiveNotification(
        type=NotificationType.arrival,
        user_name=ARRIVAL_SENDER,
        restaurant_name=place,
        comment=message,
    )


class NotificationFeed:
    """Releases pending notifications one at a time from a timer task.

    The first one shows after ``initial_delay`` seconds, later ones every
    ``interval_range`` seconds until the pending list runs out. Each stays
    current for ``visible_for`` seconds. ``start`` and ``stop`` are
    idempotent.
    """

    def __init__(
        self,
        venues: Sequence[Venue] | None = None,
        initial_delay: float = INITIAL_DELAY_S,
        interval_range: tuple[float, float] = INTERVAL_RANGE_S,
        visible_for: float = VISIBLE_FOR_S,
        seed: int | None = None,
    ) -> None:
        self.initial_delay = initial_delay
        self.interval_range = interval_range
        self.visible_for = visible_for
        self._venues = venues
        self._rng = random.Random(seed)
        self._pending: list[LiveNotification] | None = None
        self.delivered: list[LiveNotification] = []
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> list[LiveNotification]:
        if self._pending is None:
            self._pending = generate_notifications(self._venues, rng=self._rng)
        return self._pending

    def push(self, notification: LiveNotification) -> LiveNotification:
        notification = notification.model_copy(update={"timestamp": datetime.now(timezone.utc)})
        self.delivered.append(notification)
        del self.delivered[:-HISTORY_LIMIT]
        logger.debug("Notification %s: %s", notification.type.value, notification.text)
        return notification

    def tick(self) -> LiveNotification | None:
        """Deliver the next pending notification; ``None`` once exhausted."""
        if not self.pending:
            return None
        return self.push(self.pending.pop(0))

    def next_interval(self) -> float:
        low, high = self.interval_range
        return self._rng.uniform(low, high)

    async def run(self) -> None:
        await asyncio.sleep(self.initial_delay)
        while self.tick() is not None:
            await asyncio.sleep(self.next_interval())

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def current(self, now: datetime | None = None) -> LiveNotification | None:
        if not self.delivered:
            return None
        latest = self.delivered[-1]
        now = now or datetime.now(timezone.utc)
        if now - latest.timestamp >= timedelta(seconds=self.visible_for):
            return None
        return latest

    def state(self, limit: int = HISTORY_LIMIT) -> NotificationFeedState:
        return NotificationFeedState(
            running=self.running,
            current=self.current(),
            notifications=list(reversed(self.delivered[-limit:])),
        )
