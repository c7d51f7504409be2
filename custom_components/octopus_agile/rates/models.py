"""Typed records for half-hourly Agile rates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from homeassistant.util import dt as dt_utils

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class OctopusAgilePriceRecord:
    """
    One published unit rate.

    Identified by (tariff_code, valid_from). Records of one tariff never overlap.
    Values are pence per kWh.
    """

    tariff_code: str
    valid_from: datetime
    valid_to: datetime
    value_exc_vat: Decimal
    value_inc_vat: Decimal

    def __post_init__(self) -> None:
        """Reject empty validity intervals."""
        if self.valid_to <= self.valid_from:
            msg = f"valid_to ({self.valid_to}) must be after valid_from ({self.valid_from})"
            raise ValueError(msg)

    @property
    def key(self) -> tuple[str, datetime]:
        """Return the unique identity of this record."""
        return (self.tariff_code, self.valid_from)

    def overlaps(self, start: datetime, end: datetime | None = None) -> bool:
        """Return True if the validity interval intersects [start, end)."""
        if self.valid_to <= start:
            return False
        return end is None or self.valid_from < end

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON storage."""
        return {
            "tariff_code": self.tariff_code,
            "valid_from": self.valid_from.isoformat(),
            "valid_to": self.valid_to.isoformat(),
            "value_exc_vat": str(self.value_exc_vat),
            "value_inc_vat": str(self.value_inc_vat),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OctopusAgilePriceRecord:
        """
        Restore a record serialized by to_dict().

        Raises:
            KeyError, ValueError: If the stored data is incomplete or invalid.

        """
        valid_from = dt_utils.parse_datetime(data["valid_from"])
        valid_to = dt_utils.parse_datetime(data["valid_to"])
        if valid_from is None or valid_to is None:
            msg = f"Invalid timestamps in stored record: {data}"
            raise ValueError(msg)
        return cls(
            tariff_code=data["tariff_code"],
            valid_from=valid_from,
            valid_to=valid_to,
            value_exc_vat=Decimal(data["value_exc_vat"]),
            value_inc_vat=Decimal(data["value_inc_vat"]),
        )


@dataclass(frozen=True)
class OctopusAgileCacheEntry:
    """In-memory cache entry, always replaced as a whole."""

    tariff_code: str
    records: tuple[OctopusAgilePriceRecord, ...]
    fetched_at: datetime
    fetched_after_cutoff: bool
    next_refresh_at: datetime


def sort_records(records: Iterable[OctopusAgilePriceRecord]) -> list[OctopusAgilePriceRecord]:
    """Return records ordered by valid_from."""
    return sorted(records, key=lambda record: record.valid_from)


def filter_lookback_window(
    records: Iterable[OctopusAgilePriceRecord],
    now: datetime,
    lookback_hours: float,
) -> list[OctopusAgilePriceRecord]:
    """
    Return records overlapping [now - lookback_hours, +inf), ordered by valid_from.

    The currently running rate is always included, even with a zero lookback.
    """
    window_start = lookback_window_start(now, lookback_hours)
    return sort_records([record for record in records if record.overlaps(window_start)])


def lookback_window_start(now: datetime, lookback_hours: float) -> datetime:
    """Return the start of the lookback window."""
    return now - timedelta(hours=lookback_hours)
