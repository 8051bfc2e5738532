from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..geo.coords import Coordinate
from .models import Landmark, PriceTier, Venue

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
_VENUES_CSV = _DATA_DIR / "venues.csv"
_LANDMARKS_CSV = _DATA_DIR / "landmarks.csv"

_df: pd.DataFrame | None = None
_venues: list[Venue] | None = None
_landmarks: list[Landmark] | None = None


def _split_tags(value: object) -> list[str]:
    if not isinstance(value, str):
        return []
    return [t.strip() for t in value.split("|") if t.strip()]


def _load_frame() -> pd.DataFrame:
    df = pd.read_csv(_VENUES_CSV, encoding="utf-8", dtype={"id": str})
    df["known_for"] = df["known_for"].apply(_split_tags)
    for col in ("description", "open_hours", "address"):
        df[col] = df[col].fillna("")
    return df


def _row_to_venue(row: pd.Series) -> Venue:
    return Venue(
        id=str(row["id"]),
        name=row["name"],
        cuisine=row["cuisine"],
        rating=float(row["rating"]),
        review_count=int(row["review_count"]),
        location=Coordinate(lat=float(row["lat"]), lng=float(row["lng"])),
        price_tier=PriceTier.from_symbol(row["baht_tier"]),
        price_min=float(row["price_min"]),
        price_max=float(row["price_max"]),
        wait_minutes=int(row["wait_minutes"]),
        total_seats=int(row["total_seats"]),
        available_seats=int(row["available_seats"]),
        known_for=list(row["known_for"]),
        description=row["description"],
        open_hours=row["open_hours"],
        address=row["address"],
        distance_meters=float(row["distance_meters"]),
    )


def _get_venue_frame() -> pd.DataFrame:
    """Return the raw venue DataFrame, loading it on first call."""
    global _df
    if _df is None:
        _df = _load_frame()
    return _df


def get_venues() -> list[Venue]:
    """Return the venue catalog in file order. Callers must not mutate it."""
    global _venues
    if _venues is None:
        df = _get_venue_frame()
        _venues = [_row_to_venue(row) for _, row in df.iterrows()]
    return _venues


def get_venue(venue_id: str) -> Venue | None:
    for venue in get_venues():
        if venue.id == venue_id:
            return venue
    return None


def get_landmarks() -> list[Landmark]:
    global _landmarks
    if _landmarks is None:
        df = pd.read_csv(_LANDMARKS_CSV, encoding="utf-8", dtype={"id": str}).fillna("")
        _landmarks = [
            Landmark(
                id=str(row["id"]),
                name=row["name"],
                category=row["category"],
                description=row["description"],
                rating=float(row["rating"]),
                review_count=int(row["review_count"]),
                location=Coordinate(lat=float(row["lat"]), lng=float(row["lng"])),
                address=row["address"],
                best_time_to_visit=row["best_time_to_visit"],
                estimated_visit_time=row["estimated_visit_time"],
                instagram_hashtag=row["instagram_hashtag"],
            )
            for _, row in df.iterrows()
        ]
    return _landmarks


def get_landmark(landmark_id: str) -> Landmark | None:
    for landmark in get_landmarks():
        if landmark.id == landmark_id:
            return landmark
    return None
