from __future__ import annotations

import re
from typing import Any

from .models import Intent, PricePreference, TimeOfDay, WaitTolerance

# ---------------------------------------------------------------------------
# Rule table: axis -> [(value, keywords)]
# ---------------------------------------------------------------------------
# Keyword sets within an axis are curated to be mutually exclusive in
# practice; the first matching value wins.

INTENT_RULES: dict[str, list[tuple[Any, list[str]]]] = {
    "price": [
        (PricePreference.cheap, ["cheap", "budget", "affordable", "inexpensive"]),
        (PricePreference.moderate, ["moderate", "mid-range", "mid range", "reasonable"]),
        (PricePreference.premium, ["premium", "expensive", "fine dining", "luxury", "fancy", "splurge"]),
    ],
    "wait": [
        (WaitTolerance.none, ["no wait", "no-wait", "no queue", "without waiting", "right now", "table available"]),
        (WaitTolerance.short, ["short wait", "quick", "not too long", "short queue"]),
    ],
    "time_of_day": [
        (TimeOfDay.late, ["late night", "late-night", "late at night", "open late", "night", "midnight", "after dark"]),
    ],
    "spicy": [
        (True, ["spicy", "spice", "chili", "chilli", "fiery", "tom yum"]),
    ],
    "seafood": [
        (True, ["seafood", "fish", "crab", "shrimp", "prawn", "oyster", "squid"]),
    ],
    "group": [
        (True, ["group", "friends", "family", "party", "big table", "people"]),
    ],
}

CUISINE_KEYWORDS: dict[str, list[str]] = {
    "thai": ["thai"],
    "isan": ["isan", "isaan", "som tam", "papaya salad"],
    "chinese": ["chinese", "dim sum"],
    "japanese": ["japanese", "ramen", "sushi"],
    "korean": ["korean", "bbq"],
    "noodles": ["noodle"],
    "dessert": ["dessert", "sweet", "cake"],
    "cafe": ["cafe", "café", "coffee"],
    "rice soup": ["rice soup", "congee", "khao tom"],
}

# Words that signal a dining question even when no preference axis matches.
DINING_KEYWORDS: list[str] = [
    "restaurant", "eat", "food", "hungry", "dinner", "lunch", "breakfast",
    "meal", "dish", "queue", "wait", "available", "table", "price",
]

# Anchored at a word start so "eat" does not fire inside "weather" or "great".
_DINING_RE = re.compile(r"\b(?:" + "|".join(re.escape(kw) for kw in DINING_KEYWORDS) + ")")


def _match_axis(text: str, rules: list[tuple[Any, list[str]]]) -> Any | None:
    for value, keywords in rules:
        if any(kw in text for kw in keywords):
            return value
    return None


def extract_intent(text: str) -> Intent:
    """Turn a free-text query into an Intent by keyword containment."""
    lower = text.lower()

    values: dict[str, Any] = {}
    for axis, rules in INTENT_RULES.items():
        matched = _match_axis(lower, rules)
        if matched is not None:
            values[axis] = matched

    cuisines = [
        tag for tag, keywords in CUISINE_KEYWORDS.items()
        if any(kw in lower for kw in keywords)
    ]

    return Intent(cuisines=cuisines, **values)


def is_restaurant_query(text: str, intent: Intent | None = None) -> bool:
    lower = text.lower()
    if _DINING_RE.search(lower):
        return True
    intent = intent if intent is not None else extract_intent(lower)
    return not intent.is_empty()
