from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Sequence

import pandas as pd

from ..catalog.data_store import get_venues
from ..catalog.models import PriceTier, Venue
from ..geo.coords import Coordinate, haversine_m
from .models import Budget, Itinerary, ItineraryStop

logger = logging.getLogger(__name__)

MIN_STOPS = 2
MAX_STOPS = 5

START_TIME = "11:00"
MEAL_MINUTES = 45
WALK_MINUTES = 10

# "mid" applies no price filter at all; "high" also admits the middle tier.
BUDGET_TIERS: dict[Budget, set[PriceTier] | None] = {
    Budget.low: {PriceTier.low},
    Budget.mid: None,
    Budget.high: {PriceTier.high, PriceTier.mid},
}


def _distance_from(venue: Venue, start: Coordinate | None) -> float:
    if start is None:
        return venue.distance_meters
    return haversine_m(start, venue.location)


def plan_itinerary(
    budget: Budget = Budget.mid,
    stops: int = 3,
    cuisine: str | None = None,
    venues: Sequence[Venue] | None = None,
    start: Coordinate | None = None,
) -> Itinerary:
    if not MIN_STOPS <= stops <= MAX_STOPS:
        raise ValueError(f"stops must be between {MIN_STOPS} and {MAX_STOPS}")

    pool = list(venues) if venues is not None else get_venues()

    tiers = BUDGET_TIERS[budget]
    if tiers is not None:
        pool = [v for v in pool if v.price_tier in tiers]

    if cuisine and cuisine.lower() != "any":
        needle = cuisine.lower()
        pool = [v for v in pool if needle in v.cuisine.lower()]

    if not pool:
        logger.info("No venues left for budget=%s cuisine=%s", budget.value, cuisine)
        return Itinerary(budget=budget, cuisine=cuisine)

    df = pd.DataFrame({
        "_pos": range(len(pool)),
        "rating": [v.rating for v in pool],
        "wait": [v.wait_minutes for v in pool],
    })
    df["_score"] = df["rating"] * 2 - df["wait"] / 20
    picked = df.sort_values("_score", ascending=False, kind="stable").head(stops)

    selected = [pool[int(i)] for i in picked["_pos"]]
    selected.sort(key=lambda v: _distance_from(v, start))

    clock = datetime.strptime(START_TIME, "%H:%M")
    itinerary_stops: list[ItineraryStop] = []
    for index, venue in enumerate(selected):
        itinerary_stops.append(ItineraryStop(
            venue=venue,
            order=index + 1,
            estimated_arrival=clock.strftime("%H:%M"),
            estimated_wait=venue.wait_minutes,
        ))
        clock += timedelta(minutes=MEAL_MINUTES + venue.wait_minutes + WALK_MINUTES)

    return Itinerary(budget=budget, cuisine=cuisine, stops=itinerary_stops)
