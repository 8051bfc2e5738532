from __future__ import annotations

import time

from ..config import DEFAULT_APP_CONFIG
from ..geo.coords import Coordinate
from .models import RouteInfo, TransportMode

_cache: dict[str, dict] = {}
_hits: int = 0
_misses: int = 0
_DEFAULT_TTL = DEFAULT_APP_CONFIG.route_cache_ttl


def _make_key(origin: Coordinate, destination: Coordinate, mode: TransportMode) -> str:
    # ~1 m precision is plenty for reusing a route
    return (
        f"{mode.value}:{origin.lat:.5f},{origin.lng:.5f}"
        f"->{destination.lat:.5f},{destination.lng:.5f}"
    )


def cache_get(
    origin: Coordinate, destination: Coordinate, mode: TransportMode, ttl: int = _DEFAULT_TTL,
) -> RouteInfo | None:
    global _hits, _misses
    key = _make_key(origin, destination, mode)
    entry = _cache.get(key)
    if entry and time.time() - entry["created_at"] < ttl:
        _hits += 1
        return entry["value"]
    if entry:
        del _cache[key]
    _misses += 1
    return None


def cache_set(
    origin: Coordinate, destination: Coordinate, mode: TransportMode, value: RouteInfo,
) -> None:
    key = _make_key(origin, destination, mode)
    _cache[key] = {"value": value, "created_at": time.time()}


def get_cache_stats() -> dict:
    total = _hits + _misses
    return {
        "size": len(_cache),
        "hits": _hits,
        "misses": _misses,
        "hit_rate": round(_hits / total * 100, 1) if total > 0 else 0.0,
    }


def clear_cache() -> None:
    global _hits, _misses
    _cache.clear()
    _hits = 0
    _misses = 0
