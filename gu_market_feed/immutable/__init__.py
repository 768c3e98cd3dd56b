"""Immutable X marketplace feed for the Gods Unchained collection.

Implements API pulls (assets, orders, trades), valuation, DuckDB management and
artifact persistence, plus the per-proto price jobs.
"""

__all__ = [
    "api",
    "db",
    "jobs",
    "persistence",
    "valuation",
]
