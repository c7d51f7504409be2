"""Value getter mapping for Octopus Agile sensors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from custom_components.octopus_agile.const import LOWEST_SLOTS_COUNT
from custom_components.octopus_agile.utils.rates import (
    calculate_average_upcoming_rate,
    calculate_lowest_slots_average,
    find_highest_upcoming_rate,
    find_lowest_upcoming_rate,
    find_next_rate,
    find_rate_at,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from decimal import Decimal

    from custom_components.octopus_agile.rates.models import OctopusAgilePriceRecord


def _value(record: OctopusAgilePriceRecord | None) -> float | None:
    return float(record.value_inc_vat) if record else None


def _as_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def get_value_getter_mapping(
    data: dict[str, Any],
    now: datetime,
    average_hours: float,
) -> dict[str, Callable[[], Any]]:
    """
    Build mapping from entity key to value getter callable.

    Args:
        data: Coordinator data (records, updated_at, next_refresh_at, source).
        now: Reference time for slot-based values.
        average_hours: Window for the average upcoming rate.

    Returns:
        Dictionary mapping entity keys to zero-argument getters.

    """
    records: list[OctopusAgilePriceRecord] = data.get("records") or []

    return {
        "current_rate": lambda: _value(find_rate_at(records, now)),
        "next_rate": lambda: _value(find_next_rate(records, now)),
        "lowest_upcoming_rate": lambda: _value(find_lowest_upcoming_rate(records, now)),
        "highest_upcoming_rate": lambda: _value(find_highest_upcoming_rate(records, now)),
        "average_upcoming_rate": lambda: _as_float(calculate_average_upcoming_rate(records, now, average_hours)),
        "lowest_slots_average_rate": lambda: _as_float(
            calculate_lowest_slots_average(records, now, LOWEST_SLOTS_COUNT)
        ),
        "next_refresh": lambda: data.get("next_refresh_at"),
        "last_rate_update": lambda: data.get("updated_at"),
        "data_source": lambda: data.get("source"),
    }


def get_record_for_key(
    key: str,
    records: list[OctopusAgilePriceRecord],
    now: datetime,
) -> OctopusAgilePriceRecord | None:
    """Return the record a slot-based sensor refers to (for attributes)."""
    finders: dict[str, Callable[[], OctopusAgilePriceRecord | None]] = {
        "current_rate": lambda: find_rate_at(records, now),
        "next_rate": lambda: find_next_rate(records, now),
        "lowest_upcoming_rate": lambda: find_lowest_upcoming_rate(records, now),
        "highest_upcoming_rate": lambda: find_highest_upcoming_rate(records, now),
    }
    finder = finders.get(key)
    return finder() if finder else None
