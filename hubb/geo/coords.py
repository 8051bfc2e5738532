from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from pydantic import BaseModel, Field

_EARTH_RADIUS_M = 6_371_000.0


class Coordinate(BaseModel):
    model_config = {"frozen": True}

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in meters."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lam = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * _EARTH_RADIUS_M * math.asin(math.sqrt(h))


def path_length_m(coords: Sequence[Coordinate]) -> float:
    """Summed segment lengths of a polyline, in meters."""
    if len(coords) < 2:
        return 0.0
    lat = np.radians([c.lat for c in coords])
    lng = np.radians([c.lng for c in coords])
    d_phi = np.diff(lat)
    d_lam = np.diff(lng)
    h = np.sin(d_phi / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lam / 2) ** 2
    return float(np.sum(2 * _EARTH_RADIUS_M * np.arcsin(np.sqrt(h))))


def interpolate(a: Coordinate, b: Coordinate, points: int) -> list[Coordinate]:
    """Return ``points`` evenly spaced coordinates from ``a`` to ``b`` inclusive."""
    points = max(points, 2)
    lats = np.linspace(a.lat, b.lat, points)
    lngs = np.linspace(a.lng, b.lng, points)
    return [Coordinate(lat=float(la), lng=float(ln)) for la, ln in zip(lats, lngs)]


def point_along(a: Coordinate, b: Coordinate, fraction: float) -> Coordinate:
    fraction = min(max(fraction, 0.0), 1.0)
    return Coordinate(
        lat=a.lat + (b.lat - a.lat) * fraction,
        lng=a.lng + (b.lng - a.lng) * fraction,
    )


# ---------------------------------------------------------------------------
# Service region
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServiceRegion:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, coord: Coordinate) -> bool:
        return (
            self.min_lat < coord.lat < self.max_lat
            and self.min_lng < coord.lng < self.max_lng
        )


BANGKOK_REGION = ServiceRegion(min_lat=13.5, max_lat=14.0, min_lng=100.3, max_lng=100.8)
FALLBACK_ANCHOR = Coordinate(lat=13.7420, lng=100.5272)  # Bantadthong center

OUT_OF_REGION_NOTICE = "Location outside Bangkok area, using Bantadthong center"


def normalize_position(
    coord: Coordinate,
    region: ServiceRegion = BANGKOK_REGION,
    anchor: Coordinate = FALLBACK_ANCHOR,
) -> tuple[Coordinate, str | None]:
    """Remap out-of-region fixes to the anchor; returns ``(position, notice)``."""
    if region.contains(coord):
        return coord, None
    return anchor, OUT_OF_REGION_NOTICE
