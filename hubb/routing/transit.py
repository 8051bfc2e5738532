"""
Synthesized transit journeys.

There is no live transit-routing source, so a transit route is a heuristic
stand-in built from straight-line distance: walk to a station, wait to
board, ride, walk to the destination. Line names and colors come from a
short reference list of rail lines serving the Bantadthong area so the
result reads plausibly. Nothing here is measured data.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..geo.coords import Coordinate, haversine_m, interpolate, point_along
from .models import RouteInfo, RouteStep, TransportMode

WALKING_SPEED_MPS = 4.5 * 1000 / 3600
TRANSIT_SPEED_MPS = 25.0 * 1000 / 3600
BOARDING_WAIT_S = 5 * 60

MAX_ACCESS_WALK_M = 500.0
MAX_EGRESS_WALK_M = 400.0
ACCESS_SHARE = 0.15
EGRESS_SHARE = 0.10

_POINTS_PER_LEG = 12


@dataclass(frozen=True)
class Station:
    name: str
    location: Coordinate


@dataclass(frozen=True)
class TransitLine:
    name: str
    color: str
    stations: tuple[Station, ...]


TRANSIT_LINES: tuple[TransitLine, ...] = (
    TransitLine(
        name="BTS Silom Line",
        color="#00845A",
        stations=(
            Station("National Stadium", Coordinate(lat=13.7465, lng=100.5291)),
            Station("Siam", Coordinate(lat=13.7456, lng=100.5341)),
            Station("Ratchadamri", Coordinate(lat=13.7396, lng=100.5393)),
            Station("Sala Daeng", Coordinate(lat=13.7286, lng=100.5344)),
        ),
    ),
    TransitLine(
        name="MRT Blue Line",
        color="#1E4F9C",
        stations=(
            Station("Hua Lamphong", Coordinate(lat=13.7377, lng=100.5170)),
            Station("Sam Yan", Coordinate(lat=13.7325, lng=100.5298)),
            Station("Si Lom", Coordinate(lat=13.7293, lng=100.5366)),
            Station("Lumphini", Coordinate(lat=13.7257, lng=100.5452)),
        ),
    ),
    TransitLine(
        name="BTS Sukhumvit Line",
        color="#7AB51D",
        stations=(
            Station("Siam", Coordinate(lat=13.7456, lng=100.5341)),
            Station("Chit Lom", Coordinate(lat=13.7441, lng=100.5430)),
            Station("Phloen Chit", Coordinate(lat=13.7430, lng=100.5490)),
        ),
    ),
)


def _nearest(stations: tuple[Station, ...], point: Coordinate) -> tuple[int, float]:
    best_index, best_dist = 0, float("inf")
    for i, station in enumerate(stations):
        d = haversine_m(point, station.location)
        if d < best_dist:
            best_index, best_dist = i, d
    return best_index, best_dist


def choose_line(origin: Coordinate, destination: Coordinate) -> tuple[TransitLine, Station, Station]:
    """Line whose nearest station is closest to the origin, plus board/alight stations."""
    line = min(TRANSIT_LINES, key=lambda ln: _nearest(ln.stations, origin)[1])
    board_idx, _ = _nearest(line.stations, origin)
    alight_idx, _ = _nearest(line.stations, destination)
    if alight_idx == board_idx:
        alight_idx = board_idx + 1 if board_idx + 1 < len(line.stations) else board_idx - 1
    return line, line.stations[board_idx], line.stations[alight_idx]


def synthesize_transit_route(origin: Coordinate, destination: Coordinate) -> RouteInfo:
    total = haversine_m(origin, destination)

    access = min(total * ACCESS_SHARE, MAX_ACCESS_WALK_M)
    egress = min(total * EGRESS_SHARE, MAX_EGRESS_WALK_M)
    ride = max(total - access - egress, 0.0)

    line, board, alight = choose_line(origin, destination)
    stops = abs(line.stations.index(alight) - line.stations.index(board))

    board_point = point_along(origin, destination, access / total if total else 0.0)
    alight_point = point_along(origin, destination, (access + ride) / total if total else 1.0)

    steps = [
        RouteStep(
            instruction=f"Walk to {board.name} station",
            distance=access,
            duration=access / WALKING_SPEED_MPS,
            kind="walk",
        ),
        RouteStep(
            instruction=f"Wait for the {line.name} towards {alight.name}",
            distance=0.0,
            duration=BOARDING_WAIT_S,
            kind="wait",
            transit_line=line.name,
            transit_color=line.color,
        ),
        RouteStep(
            instruction=(
                f"Ride the {line.name} {stops} stop{'s' if stops != 1 else ''} "
                f"to {alight.name}"
            ),
            distance=ride,
            duration=ride / TRANSIT_SPEED_MPS,
            kind="ride",
            transit_line=line.name,
            transit_color=line.color,
        ),
        RouteStep(
            instruction="Walk from the station to your destination",
            distance=egress,
            duration=egress / WALKING_SPEED_MPS,
            kind="walk",
        ),
        RouteStep(instruction="Arrive at your destination", distance=0.0, duration=0.0, kind="arrive"),
    ]

    geometry = interpolate(origin, board_point, _POINTS_PER_LEG)
    geometry += interpolate(board_point, alight_point, _POINTS_PER_LEG)[1:]
    geometry += interpolate(alight_point, destination, _POINTS_PER_LEG)[1:]

    return RouteInfo(
        mode=TransportMode.transit,
        distance=total,
        duration=sum(s.duration for s in steps),
        geometry=geometry,
        steps=steps,
        synthesized=True,
    )
