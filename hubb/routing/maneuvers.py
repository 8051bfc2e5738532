from __future__ import annotations

DEFAULT_TEMPLATE = "Continue on {road}"
UNNAMED_ROAD = "the road"

# (maneuver type, modifier) -> template; a ``None`` modifier is the per-type default.
MANEUVER_TEMPLATES: dict[tuple[str, str | None], str] = {
    ("depart", None): "Head out on {road}",
    ("arrive", None): "Arrive at your destination",
    ("turn", "left"): "Turn left onto {road}",
    ("turn", "right"): "Turn right onto {road}",
    ("turn", "slight left"): "Bear left onto {road}",
    ("turn", "slight right"): "Bear right onto {road}",
    ("turn", "sharp left"): "Turn sharp left onto {road}",
    ("turn", "sharp right"): "Turn sharp right onto {road}",
    ("turn", "uturn"): "Make a U-turn onto {road}",
    ("turn", "straight"): "Continue straight onto {road}",
    ("turn", None): "Turn onto {road}",
    ("new name", None): "Continue onto {road}",
    ("continue", "uturn"): "Make a U-turn onto {road}",
    ("continue", None): "Continue on {road}",
    ("merge", None): "Merge onto {road}",
    ("on ramp", None): "Take the ramp onto {road}",
    ("off ramp", None): "Take the exit onto {road}",
    ("fork", "left"): "Keep left at the fork onto {road}",
    ("fork", "slight left"): "Keep left at the fork onto {road}",
    ("fork", "right"): "Keep right at the fork onto {road}",
    ("fork", "slight right"): "Keep right at the fork onto {road}",
    ("fork", None): "Keep straight at the fork onto {road}",
    ("end of road", "left"): "At the end of the road, turn left onto {road}",
    ("end of road", "right"): "At the end of the road, turn right onto {road}",
    ("roundabout", None): "Enter the roundabout and exit onto {road}",
    ("rotary", None): "Enter the roundabout and exit onto {road}",
    ("roundabout turn", "left"): "At the roundabout, turn left onto {road}",
    ("roundabout turn", "right"): "At the roundabout, turn right onto {road}",
}


def describe(maneuver_type: str, modifier: str | None = None, road: str | None = None) -> str:
    """Readable instruction for an OSRM maneuver."""
    key_type = (maneuver_type or "").strip().lower()
    key_mod = modifier.strip().lower() if modifier else None
    template = (
        MANEUVER_TEMPLATES.get((key_type, key_mod))
        or MANEUVER_TEMPLATES.get((key_type, None))
        or DEFAULT_TEMPLATE
    )
    return template.format(road=(road or "").strip() or UNNAMED_ROAD)
