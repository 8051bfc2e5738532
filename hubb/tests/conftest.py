from __future__ import annotations

import pytest

from hubb.catalog.models import PriceTier, Venue
from hubb.geo.coords import Coordinate
from hubb.routing.cache import clear_cache


def _venue(id: str, tier: PriceTier, rating: float, wait: int, seats: tuple[int, int], **extra) -> Venue:
    total, available = seats
    fields = dict(
        id=id,
        name=f"Venue {id}",
        cuisine="Thai",
        rating=rating,
        location=Coordinate(lat=13.74, lng=100.52),
        price_tier=tier,
        wait_minutes=wait,
        total_seats=total,
        available_seats=available,
        open_hours="10:00-20:00",
    )
    fields.update(extra)
    return Venue(**fields)


@pytest.fixture
def make_venue():
    return _venue


@pytest.fixture
def five_venues() -> list[Venue]:
    return [
        _venue("a", PriceTier.low, 4.5, 30, (10, 2), open_hours="17:00-02:00"),
        _venue("b", PriceTier.low, 4.2, 5, (20, 15), known_for=["Spicy Som Tam"]),
        _venue("c", PriceTier.mid, 4.8, 10, (30, 10), cuisine="Seafood"),
        _venue("d", PriceTier.high, 4.9, 40, (12, 0)),
        _venue("e", PriceTier.low, 3.9, 0, (8, 8)),
    ]


@pytest.fixture(autouse=True)
def _fresh_route_cache():
    clear_cache()
    yield
    clear_cache()
