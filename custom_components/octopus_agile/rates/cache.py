"""In-memory rate cache for the active tariff."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from custom_components.octopus_agile.const import EMPTY_CACHE_REFRESH_DELAY

from .models import OctopusAgileCacheEntry, filter_lookback_window, sort_records

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from .freshness import OctopusAgileFreshnessPolicy
    from .models import OctopusAgilePriceRecord

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")


class OctopusAgileRateCache:
    """
    Holds one cache entry for the tariff currently in use.

    The entry is never mutated: store() replaces it and invalidate() drops it.
    None of the methods suspend, so callers serialize access with the
    repository lock and never observe a half-written entry.

    Lookups never raise; a stale, insufficient or foreign entry is reported
    as a miss (None).
    """

    def __init__(self, policy: OctopusAgileFreshnessPolicy) -> None:
        """Initialize an empty cache."""
        self._policy = policy
        self._entry: OctopusAgileCacheEntry | None = None

    @property
    def entry(self) -> OctopusAgileCacheEntry | None:
        """Return the current entry (read-only)."""
        return self._entry

    @property
    def tariff_code(self) -> str | None:
        """Return the tariff code of the current entry."""
        return self._entry.tariff_code if self._entry else None

    def lookup(
        self,
        tariff_code: str,
        now: datetime,
        lookback_hours: float,
    ) -> list[OctopusAgilePriceRecord] | None:
        """
        Return cached records for the lookback window, or None on a miss.

        A hit requires a matching tariff code, an entry fetched in the current
        publication cycle, and records reaching the expected coverage end.
        """
        entry = self._entry
        if entry is None:
            _LOGGER_DETAILS.debug("Cache miss for %s: empty", tariff_code)
            return None

        if entry.tariff_code != tariff_code:
            _LOGGER_DETAILS.debug("Cache miss for %s: holds %s", tariff_code, entry.tariff_code)
            return None

        if not self._policy.is_entry_fresh(entry, now):
            _LOGGER.debug(
                "Cache miss for %s: fetched at %s (after cutoff: %s) is stale",
                tariff_code,
                entry.fetched_at.isoformat(),
                entry.fetched_after_cutoff,
            )
            return None

        if not self._policy.is_sufficient(entry.records, now):
            _LOGGER.debug("Cache miss for %s: records do not reach expected coverage end", tariff_code)
            return None

        return filter_lookback_window(entry.records, now, lookback_hours)

    def store(
        self,
        tariff_code: str,
        records: Iterable[OctopusAgilePriceRecord],
        now: datetime,
    ) -> OctopusAgileCacheEntry:
        """Replace the entry with freshly obtained records."""
        entry = OctopusAgileCacheEntry(
            tariff_code=tariff_code,
            records=tuple(sort_records(records)),
            fetched_at=now,
            fetched_after_cutoff=self._policy.is_after_cutoff(now),
            next_refresh_at=self._policy.next_refresh_at(now),
        )
        self._entry = entry
        _LOGGER_DETAILS.debug(
            "Cached %d rates for %s (next refresh %s)",
            len(entry.records),
            tariff_code,
            entry.next_refresh_at.isoformat(),
        )
        return entry

    def invalidate(self) -> None:
        """Drop the entry."""
        if self._entry is not None:
            _LOGGER.debug("Invalidating cached rates for %s", self._entry.tariff_code)
        self._entry = None

    def next_refresh_at(self, now: datetime) -> datetime:
        """Return when new data is expected; soon if nothing is cached."""
        if self._entry is None:
            return now + EMPTY_CACHE_REFRESH_DELAY
        return self._entry.next_refresh_at
