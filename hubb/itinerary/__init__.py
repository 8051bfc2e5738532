"""
Itinerary planner.

Responsibilities:
- Pick venues for a multi-stop food tour from budget / cuisine / stop count.
- Order the picks into a walking sequence and schedule arrival times.
- Stop removal and derived budget / wait summaries.
"""
