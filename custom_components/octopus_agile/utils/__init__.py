"""
Pure rate calculation utilities.

These functions operate on price records only and do NOT depend on
Home Assistant entities, config entries or coordinators.
"""

from __future__ import annotations

from .rates import (
    calculate_average_upcoming_rate,
    calculate_lowest_slots_average,
    find_highest_upcoming_rate,
    find_lowest_upcoming_rate,
    find_next_rate,
    find_rate_at,
    get_upcoming_rates,
)

__all__ = [
    "calculate_average_upcoming_rate",
    "calculate_lowest_slots_average",
    "find_highest_upcoming_rate",
    "find_lowest_upcoming_rate",
    "find_next_rate",
    "find_rate_at",
    "get_upcoming_rates",
]
