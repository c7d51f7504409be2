"""Utility functions for rate aggregates."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from custom_components.octopus_agile.rates.models import OctopusAgilePriceRecord


def find_rate_at(records: Sequence[OctopusAgilePriceRecord], moment: datetime) -> OctopusAgilePriceRecord | None:
    """Return the record whose validity interval contains moment."""
    for record in records:
        if record.valid_from <= moment < record.valid_to:
            return record
    return None


def find_next_rate(records: Sequence[OctopusAgilePriceRecord], now: datetime) -> OctopusAgilePriceRecord | None:
    """Return the first record starting after now."""
    upcoming = [record for record in records if record.valid_from > now]
    return min(upcoming, key=lambda record: record.valid_from) if upcoming else None


def get_upcoming_rates(records: Sequence[OctopusAgilePriceRecord], now: datetime) -> list[OctopusAgilePriceRecord]:
    """Return records that have not ended yet, the current one included."""
    return [record for record in records if record.valid_to > now]


def find_lowest_upcoming_rate(
    records: Sequence[OctopusAgilePriceRecord],
    now: datetime,
) -> OctopusAgilePriceRecord | None:
    """Return the cheapest rate (inc. VAT) that has not ended yet; earliest wins ties."""
    upcoming = get_upcoming_rates(records, now)
    return min(upcoming, key=lambda record: (record.value_inc_vat, record.valid_from)) if upcoming else None


def find_highest_upcoming_rate(
    records: Sequence[OctopusAgilePriceRecord],
    now: datetime,
) -> OctopusAgilePriceRecord | None:
    """Return the most expensive rate (inc. VAT) that has not ended yet; earliest wins ties."""
    upcoming = get_upcoming_rates(records, now)
    return max(upcoming, key=lambda record: (record.value_inc_vat, -record.valid_from.timestamp())) if upcoming else None


def calculate_average_upcoming_rate(
    records: Sequence[OctopusAgilePriceRecord],
    now: datetime,
    hours: float,
) -> Decimal | None:
    """
    Average rate (inc. VAT) of the slots fully inside [now, now + hours).

    Returns:
        The mean, or None if no slot fits in the window.

    """
    window_end = now + timedelta(hours=hours)
    values = [
        record.value_inc_vat for record in records if record.valid_from >= now and record.valid_to <= window_end
    ]
    if not values:
        return None
    return sum(values, Decimal(0)) / len(values)


def calculate_lowest_slots_average(
    records: Sequence[OctopusAgilePriceRecord],
    now: datetime,
    count: int,
) -> Decimal | None:
    """Average of the `count` cheapest slots starting after now."""
    future = sorted(
        (record.value_inc_vat for record in records if record.valid_from > now),
    )[:count]
    if not future:
        return None
    return sum(future, Decimal(0)) / len(future)
