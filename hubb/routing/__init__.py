"""
Route resolution.

Responsibilities:
- Talk to the OSRM routing service for walking and driving routes.
- Translate OSRM maneuvers into readable instructions.
- Recalibrate walking durations to an urban pedestrian pace.
- Synthesize plausible transit journeys (no live transit data is used).
- Cache resolved routes for a short TTL.
"""
