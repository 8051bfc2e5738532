"""
Navigation.

Responsibilities:
- Track the user's position from client-reported fixes (single shared watch).
- Replay or live-track progress along a resolved route, emitting step and
  arrival events.
"""
