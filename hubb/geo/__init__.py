"""
Geographic primitives.

Responsibilities:
- Named Coordinate type shared by every component.
- Great-circle distances and path helpers.
- Service-region checks and the Bantadthong fallback anchor.
"""
