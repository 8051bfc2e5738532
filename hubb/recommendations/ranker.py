from __future__ import annotations

import logging
from typing import Sequence

import pandas as pd

from ..catalog.data_store import get_venues
from ..catalog.models import PriceTier, Venue
from ..chat.models import Intent, PricePreference, TimeOfDay, WaitTolerance
from .models import RankedResult

logger = logging.getLogger(__name__)

TOP_N = 3

# Scoring weights: quality and availability dominate, wait is a small penalty.
RATING_WEIGHT = 10.0
AVAILABILITY_WEIGHT = 5.0
WAIT_DIVISOR = 10.0

PRICE_TIERS: dict[PricePreference, PriceTier] = {
    PricePreference.cheap: PriceTier.low,
    PricePreference.moderate: PriceTier.mid,
    PricePreference.premium: PriceTier.high,
}

WAIT_CEILINGS: dict[WaitTolerance, int] = {
    WaitTolerance.none: 15,
    WaitTolerance.short: 25,
}

GROUP_MIN_SEATS = 10

_LATE_NIGHT_PATTERN = r"-\s*0[0-4]:|24 hours|late"
_SPICY_TERMS = ["spicy", "chili", "chilli", "tom yum", "som tam"]
_SEAFOOD_TERMS = ["seafood", "fish", "crab", "prawn", "shrimp"]
_GROUP_TERMS = ["group", "family", "party"]


def _to_frame(venues: Sequence[Venue]) -> pd.DataFrame:
    rows = []
    for position, v in enumerate(venues):
        rows.append({
            "_pos": position,
            "price_tier": v.price_tier.value,
            "rating": v.rating,
            "wait_minutes": v.wait_minutes,
            "total_seats": v.total_seats,
            "available_seats": v.available_seats,
            "open_hours": v.open_hours,
            "cuisine": v.cuisine.lower(),
            "text": " ".join([v.cuisine, v.description, *v.known_for]).lower(),
        })
    return pd.DataFrame(rows)


def _contains_any(series: pd.Series, terms: list[str]) -> pd.Series:
    mask = pd.Series(False, index=series.index)
    for term in terms:
        mask = mask | series.str.contains(term, regex=False)
    return mask


def _filter_mask(df: pd.DataFrame, intent: Intent) -> pd.Series:
    mask = pd.Series(True, index=df.index)

    if intent.price is not None:
        mask = mask & (df["price_tier"] == PRICE_TIERS[intent.price].value)

    if intent.wait is not None:
        mask = mask & (df["wait_minutes"] <= WAIT_CEILINGS[intent.wait])

    if intent.time_of_day == TimeOfDay.late:
        mask = mask & df["open_hours"].str.contains(_LATE_NIGHT_PATTERN, case=False, regex=True)

    if intent.spicy:
        mask = mask & _contains_any(df["text"], _SPICY_TERMS)

    if intent.seafood:
        mask = mask & _contains_any(df["text"], _SEAFOOD_TERMS)

    if intent.cuisines:
        mask = mask & _contains_any(df["text"], [c.lower() for c in intent.cuisines])

    if intent.group:
        mask = mask & (
            (df["total_seats"] >= GROUP_MIN_SEATS) | _contains_any(df["text"], _GROUP_TERMS)
        )

    return mask


def score_venue(venue: Venue) -> float:
    """``rating*10 + (available/total)*5 - wait/10``."""
    availability = venue.available_seats / venue.total_seats
    return (
        venue.rating * RATING_WEIGHT
        + availability * AVAILABILITY_WEIGHT
        - venue.wait_minutes / WAIT_DIVISOR
    )


def _score_frame(df: pd.DataFrame) -> pd.Series:
    return (
        df["rating"] * RATING_WEIGHT
        + (df["available_seats"] / df["total_seats"]) * AVAILABILITY_WEIGHT
        - df["wait_minutes"] / WAIT_DIVISOR
    )


def rank_venues(
    intent: Intent,
    venues: Sequence[Venue] | None = None,
    limit: int = TOP_N,
) -> list[RankedResult]:
    """Filter by every present Intent axis, then return the best ``limit`` venues.

    An empty list means nothing survived the filters; falling back to an
    unfiltered list is left to the caller.
    """
    pool = list(venues) if venues is not None else get_venues()
    if not pool:
        return []

    df = _to_frame(pool)
    candidates = df.loc[_filter_mask(df, intent)].copy()
    logger.debug("Ranker kept %d of %d venues for %s", len(candidates), len(df), intent)

    if candidates.empty:
        return []

    candidates["_score"] = _score_frame(candidates)
    top = candidates.sort_values("_score", ascending=False, kind="stable").head(limit)

    return [
        RankedResult(venue=pool[int(row["_pos"])], score=round(float(row["_score"]), 4))
        for _, row in top.iterrows()
    ]


def count_candidates(intent: Intent, venues: Sequence[Venue] | None = None) -> int:
    pool = list(venues) if venues is not None else get_venues()
    if not pool:
        return 0
    df = _to_frame(pool)
    return int(_filter_mask(df, intent).sum())


def top_rated(n: int = TOP_N, venues: Sequence[Venue] | None = None) -> list[RankedResult]:
    """Unfiltered top ``n`` by rating, used when filters leave nothing."""
    pool = list(venues) if venues is not None else get_venues()
    ordered = sorted(pool, key=lambda v: v.rating, reverse=True)[:n]
    return [RankedResult(venue=v, score=round(score_venue(v), 4)) for v in ordered]
