"""
Freshness rules for published Agile rates.

Octopus publishes the next day's half-hourly rates once a day at the cutoff
hour (16:00 UK time). Published data runs until 23:00 UK time on the day after
publication. All calculations here are pure: "now" is always passed in, and the
reference time zone is fixed, independent of the Home Assistant time zone.

Rules:
- Before the cutoff, rates are expected up to 23:00 today.
- At or after the cutoff, rates are expected up to 23:00 tomorrow.
- A cache entry fetched after yesterday's cutoff stays fresh until today's cutoff.
- A cache entry fetched after today's cutoff stays fresh for the rest of today.

If the reference time zone cannot be resolved every check fails safe:
records are insufficient, entries are stale, and the next refresh is one hour away.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from custom_components.octopus_agile.const import (
    CALENDAR_FAILURE_REFRESH_DELAY,
    COVERAGE_END_HOUR,
    PUBLICATION_CUTOFF_HOUR,
    REFERENCE_TIME_ZONE,
    SUFFICIENCY_TOLERANCE,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import OctopusAgileCacheEntry, OctopusAgilePriceRecord

_LOGGER = logging.getLogger(__name__)


class OctopusAgileFreshnessPolicy:
    """Publication-schedule based freshness and sufficiency checks."""

    def __init__(
        self,
        *,
        cutoff_hour: int = PUBLICATION_CUTOFF_HOUR,
        coverage_end_hour: int = COVERAGE_END_HOUR,
        time_zone: str = REFERENCE_TIME_ZONE,
        tolerance: timedelta = SUFFICIENCY_TOLERANCE,
    ) -> None:
        """
        Initialize the policy.

        Args:
            cutoff_hour: Local hour at which the next day's rates are published.
            coverage_end_hour: Local hour at which published data ends.
            time_zone: IANA name of the provider's reference time zone.
            tolerance: Allowed distance between a record start and the coverage end.

        """
        self.cutoff_hour = cutoff_hour
        self.coverage_end_hour = coverage_end_hour
        self.tolerance = tolerance
        self._zone: ZoneInfo | None
        try:
            self._zone = ZoneInfo(time_zone)
        except (ZoneInfoNotFoundError, ValueError):
            _LOGGER.exception(
                "Reference time zone %s unavailable, rates will always be refetched",
                time_zone,
            )
            self._zone = None

    # -------------------------------------------------------------------------
    # Calendar helpers (reference zone)
    # -------------------------------------------------------------------------

    def _local_date(self, moment: datetime) -> date | None:
        if self._zone is None:
            return None
        try:
            return moment.astimezone(self._zone).date()
        except (OverflowError, ValueError):
            return None

    def _at_hour(self, day: date, hour: int) -> datetime | None:
        if self._zone is None:
            return None
        try:
            return datetime.combine(day, time(hour=hour), tzinfo=self._zone)
        except (OverflowError, ValueError):
            return None

    def cutoff_for(self, now: datetime) -> datetime | None:
        """Return today's cutoff moment in the reference zone."""
        today = self._local_date(now)
        return self._at_hour(today, self.cutoff_hour) if today else None

    def is_after_cutoff(self, moment: datetime) -> bool:
        """Return True if moment is at or after the cutoff of its own reference-zone day."""
        cutoff = self.cutoff_for(moment)
        return cutoff is not None and moment >= cutoff

    # -------------------------------------------------------------------------
    # Public rules
    # -------------------------------------------------------------------------

    def expected_coverage_end(self, now: datetime) -> datetime | None:
        """
        Return the moment published data is expected to reach.

        23:00 today before the cutoff, 23:00 tomorrow at or after it.
        None if calendar calculations are unavailable.
        """
        today = self._local_date(now)
        if today is None:
            return None
        day = today + timedelta(days=1) if self.is_after_cutoff(now) else today
        return self._at_hour(day, self.coverage_end_hour)

    def is_sufficient(self, records: Iterable[OctopusAgilePriceRecord], now: datetime) -> bool:
        """
        Return True if the records reach the expected coverage end.

        A record reaches the boundary if it ends at or after it, or starts within
        the tolerance window around it.
        """
        expected_end = self.expected_coverage_end(now)
        if expected_end is None:
            return False
        return any(
            record.valid_to >= expected_end or abs(record.valid_from - expected_end) <= self.tolerance
            for record in records
        )

    def is_entry_fresh(self, entry: OctopusAgileCacheEntry, now: datetime) -> bool:
        """
        Return True if a cache entry was fetched within the current publication cycle.

        Entries older than one reference-zone calendar day are never fresh.
        """
        today = self._local_date(now)
        fetched_on = self._local_date(entry.fetched_at)
        if today is None or fetched_on is None:
            return False

        if self.is_after_cutoff(now):
            return entry.fetched_after_cutoff and fetched_on == today

        if entry.fetched_after_cutoff:
            return fetched_on == today - timedelta(days=1)
        return fetched_on == today

    def next_refresh_at(self, now: datetime) -> datetime:
        """Return the next cutoff: today's if still ahead, otherwise tomorrow's."""
        today = self._local_date(now)
        if today is None:
            return now + CALENDAR_FAILURE_REFRESH_DELAY

        cutoff_today = self._at_hour(today, self.cutoff_hour)
        if cutoff_today is None:
            return now + CALENDAR_FAILURE_REFRESH_DELAY
        if now < cutoff_today:
            return cutoff_today

        cutoff_tomorrow = self._at_hour(today + timedelta(days=1), self.cutoff_hour)
        return cutoff_tomorrow or now + CALENDAR_FAILURE_REFRESH_DELAY
