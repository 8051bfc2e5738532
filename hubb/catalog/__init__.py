"""
Venue catalog.

Responsibilities:
- Define the Venue and Landmark records for the Bantadthong neighborhood.
- Load the bundled CSV catalog once and keep it read-only in memory.
- Landmark browsing (search, category filter, sort).
"""
