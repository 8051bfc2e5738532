from __future__ import annotations

import pytest

from hubb.catalog.models import PriceTier
from hubb.chat.models import Intent, PricePreference, TimeOfDay, WaitTolerance
from hubb.recommendations.ranker import count_candidates, rank_venues, score_venue, top_rated


def _ids(results):
    return [r.venue.id for r in results]


def test_score_formula(make_venue):
    venue = make_venue("x", PriceTier.low, 4.0, 20, (10, 5))
    assert score_venue(venue) == pytest.approx(40 + 2.5 - 2)


def test_no_filters_returns_top_three(five_venues):
    results = rank_venues(Intent(), five_venues)
    assert _ids(results) == ["c", "b", "d"]


def test_scores_non_increasing(five_venues):
    scores = [r.score for r in rank_venues(Intent(), five_venues, limit=5)]
    assert scores == sorted(scores, reverse=True)


def test_cheap_returns_only_low_tier(five_venues):
    results = rank_venues(Intent(price=PricePreference.cheap), five_venues)
    assert _ids(results) == ["b", "e", "a"]
    assert all(r.venue.price_tier == PriceTier.low for r in results)


def test_wait_ceiling(five_venues):
    results = rank_venues(Intent(wait=WaitTolerance.none), five_venues)
    assert all(r.venue.wait_minutes <= 15 for r in results)
    assert _ids(results) == ["c", "b", "e"]


def test_late_night_uses_closing_hour(five_venues):
    results = rank_venues(Intent(time_of_day=TimeOfDay.late), five_venues)
    assert _ids(results) == ["a"]


def test_spicy_and_seafood_flags(five_venues):
    assert _ids(rank_venues(Intent(spicy=True), five_venues)) == ["b"]
    assert _ids(rank_venues(Intent(seafood=True), five_venues)) == ["c"]


def test_group_needs_seats(five_venues):
    results = rank_venues(Intent(group=True), five_venues)
    assert "e" not in _ids(results)


def test_nothing_matches_returns_empty(five_venues):
    intent = Intent(price=PricePreference.cheap, seafood=True)
    assert rank_venues(intent, five_venues) == []
    assert count_candidates(intent, five_venues) == 0


def test_top_rated_ignores_filters(five_venues):
    assert _ids(top_rated(3, five_venues)) == ["d", "c", "a"]


def test_ties_keep_catalog_order(make_venue):
    venues = [
        make_venue("first", PriceTier.mid, 4.0, 10, (10, 5)),
        make_venue("second", PriceTier.mid, 4.0, 10, (10, 5)),
    ]
    assert _ids(rank_venues(Intent(), venues)) == ["first", "second"]


def test_does_not_mutate_catalog(five_venues):
    before = [v.model_dump() for v in five_venues]
    rank_venues(Intent(price=PricePreference.cheap), five_venues)
    assert [v.model_dump() for v in five_venues] == before


def test_empty_catalog():
    assert rank_venues(Intent(), []) == []


def test_bundled_catalog_cheap_query():
    results = rank_venues(Intent(price=PricePreference.cheap))
    assert 0 < len(results) <= 3
    assert all(r.venue.baht_tier == "฿" for r in results)


def test_only_the_two_cheap_venues_survive(make_venue):
    venues = [
        make_venue("v1", PriceTier.mid, 4.9, 0, (10, 10)),
        make_venue("v2", PriceTier.low, 4.0, 20, (10, 2)),
        make_venue("v3", PriceTier.high, 4.7, 5, (10, 5)),
        make_venue("v4", PriceTier.low, 4.4, 10, (10, 5)),
        make_venue("v5", PriceTier.mid, 3.8, 0, (10, 10)),
    ]
    results = rank_venues(Intent(price=PricePreference.cheap), venues)
    # v4: 44 + 2.5 - 1 = 45.5, v2: 40 + 1 - 2 = 39
    assert _ids(results) == ["v4", "v2"]
    assert results[0].score == pytest.approx(45.5)
