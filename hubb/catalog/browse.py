from __future__ import annotations

import re
from typing import Literal

from .data_store import get_landmarks, get_venues
from .models import Landmark, Venue

LANDMARK_CATEGORIES = ["All", "University", "Shopping", "Museum", "Temple", "Park", "Market"]

SortKey = Literal["rating", "reviews"]


def search_landmarks(
    query: str = "",
    category: str = "All",
    sort_by: SortKey = "rating",
    landmarks: list[Landmark] | None = None,
) -> list[Landmark]:
    """Filter landmarks by free text and category, best first."""
    pool = landmarks if landmarks is not None else get_landmarks()
    needle = query.strip().lower()

    matches = [
        lm for lm in pool
        if (not needle or needle in lm.name.lower() or needle in lm.description.lower())
        and (category == "All" or lm.category == category)
    ]

    if sort_by == "reviews":
        return sorted(matches, key=lambda lm: lm.review_count, reverse=True)
    return sorted(matches, key=lambda lm: lm.rating, reverse=True)


def cuisine_options(venues: list[Venue] | None = None) -> list[str]:
    """Distinct leading cuisine words, in catalog order."""
    pool = venues if venues is not None else get_venues()
    seen: list[str] = []
    for venue in pool:
        head = re.sub(r"[^a-zA-Z]", "", venue.cuisine.split(" ")[0])
        if head and head not in seen:
            seen.append(head)
    return seen
