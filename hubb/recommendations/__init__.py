"""
Recommendation ranker.

Responsibilities:
- Filter the venue catalog by a structured Intent.
- Score survivors with a weighted rating / availability / wait formula.
- Return the top picks, or nothing when every venue is filtered out.
"""
