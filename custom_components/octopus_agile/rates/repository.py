"""
Rate repository: cache → record store → remote API cascade.

The repository is the single entry point for rate data. Each request walks the
sources from cheapest to most authoritative:

1. A cached entry for a different tariff is dropped (tariff switch).
2. A fresh, sufficient cache entry is returned without any I/O.
3. Stored records for the lookback window are returned if sufficient.
4. Rates are fetched remotely, upserted into the store and re-queried.

Steps 1-4 run as one single-flight execution per tariff code, so concurrent
callers share one remote fetch and one store write.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from custom_components.octopus_agile.api.exceptions import OctopusAgileApiClientError
from custom_components.octopus_agile.api.helpers import parse_tariff_code
from custom_components.octopus_agile.exceptions import (
    OctopusAgileFetchFailedError,
    OctopusAgileLocalDataIncompleteError,
    OctopusAgileNoDataAvailableError,
)

from .cache import OctopusAgileRateCache
from .freshness import OctopusAgileFreshnessPolicy
from .models import filter_lookback_window, lookback_window_start
from .single_flight import OctopusAgileSingleFlight

if TYPE_CHECKING:
    from datetime import datetime

    from custom_components.octopus_agile.api.client import OctopusAgileApiClient

    from .models import OctopusAgilePriceRecord
    from .record_store import OctopusAgileRecordStore

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")

SOURCE_CACHE = "cache"
SOURCE_STORE = "store"
SOURCE_REMOTE = "remote"


class OctopusAgileRateRepository:
    """Cascade façade over the rate cache, the record store and the API client."""

    def __init__(
        self,
        *,
        api: OctopusAgileApiClient,
        record_store: OctopusAgileRecordStore,
        policy: OctopusAgileFreshnessPolicy | None = None,
        cache: OctopusAgileRateCache | None = None,
    ) -> None:
        """
        Initialize the repository.

        Args:
            api: Remote rates client.
            record_store: Persistent record store.
            policy: Freshness rules. Defaults to the UK publication schedule.
            cache: In-memory cache. Defaults to a new cache using policy.

        """
        self._api = api
        self._record_store = record_store
        self._policy = policy or OctopusAgileFreshnessPolicy()
        self._cache = cache or OctopusAgileRateCache(self._policy)
        # One lock guards both the cache entry and the single-flight token table
        self._lock = asyncio.Lock()
        self._single_flight: OctopusAgileSingleFlight[list[OctopusAgilePriceRecord]] = OctopusAgileSingleFlight(
            lock=self._lock
        )

        self._last_source: str | None = None
        self._counters = {SOURCE_CACHE: 0, SOURCE_STORE: 0, SOURCE_REMOTE: 0, "failures": 0}

    @property
    def policy(self) -> OctopusAgileFreshnessPolicy:
        """Return the freshness policy in use."""
        return self._policy

    @property
    def last_source(self) -> str | None:
        """Return where the most recent successful result came from (cache, store or remote)."""
        return self._last_source

    async def async_get_rates(
        self,
        tariff_code: str,
        *,
        lookback_hours: float,
        now: datetime,
    ) -> list[OctopusAgilePriceRecord]:
        """
        Return rates for tariff_code overlapping [now - lookback_hours, +inf).

        Concurrent calls for the same tariff code join the running execution and
        receive its result, including the lookback window of the caller that
        started it.

        Raises:
            OctopusAgileInvalidTariffCodeError: Empty or malformed tariff code.
            OctopusAgileFetchFailedError: The remote fetch failed.
            OctopusAgileLocalDataIncompleteError: Records exist but do not reach the coverage end.
            OctopusAgileNoDataAvailableError: No records at all after the remote fetch.

        """
        parse_tariff_code(tariff_code)
        tariff_code = tariff_code.strip()

        async def _cascade() -> list[OctopusAgilePriceRecord]:
            # Counted once per execution, not per joined caller
            try:
                return await self._async_cascade(tariff_code, lookback_hours, now)
            except (OctopusAgileFetchFailedError, OctopusAgileNoDataAvailableError):
                self._counters["failures"] += 1
                raise

        return await self._single_flight.execute(tariff_code, _cascade)

    async def _async_cascade(
        self,
        tariff_code: str,
        lookback_hours: float,
        now: datetime,
    ) -> list[OctopusAgilePriceRecord]:
        # Steps 1-2: tariff switch and cache lookup
        async with self._lock:
            if self._cache.tariff_code is not None and self._cache.tariff_code != tariff_code:
                _LOGGER.debug("Tariff changed from %s to %s, dropping cached rates", self._cache.tariff_code, tariff_code)
                self._cache.invalidate()

            cached = self._cache.lookup(tariff_code, now, lookback_hours)
            if cached is not None:
                self._record_source(SOURCE_CACHE)
                _LOGGER_DETAILS.debug("Serving %d rates for %s from cache", len(cached), tariff_code)
                return cached

        # Step 3: record store
        window_start = lookback_window_start(now, lookback_hours)
        stored = await self._async_query_store(tariff_code, window_start)
        if stored and self._policy.is_sufficient(stored, now):
            _LOGGER.debug("Serving %d rates for %s from record store", len(stored), tariff_code)
            return await self._async_cache_and_return(tariff_code, stored, now, SOURCE_STORE)

        if stored:
            _LOGGER.debug("Stored rates for %s are incomplete, fetching from API", tariff_code)

        # Step 4: remote fetch
        try:
            fetched = await self._api.async_get_standard_unit_rates(tariff_code, period_from=window_start)
        except OctopusAgileApiClientError as error:
            _LOGGER.warning("Fetching rates for %s failed: %s", tariff_code, error)
            raise OctopusAgileFetchFailedError(error) from error

        await self._record_store.async_upsert(fetched, now=now)

        records = await self._async_query_store(tariff_code, window_start)
        if records is None:
            records = filter_lookback_window(fetched, now, lookback_hours)

        if not records:
            raise OctopusAgileNoDataAvailableError(
                OctopusAgileNoDataAvailableError.NO_DATA.format(tariff_code=tariff_code)
            )

        if not self._policy.is_sufficient(records, now):
            expected_end = self._policy.expected_coverage_end(now)
            raise OctopusAgileLocalDataIncompleteError(
                OctopusAgileLocalDataIncompleteError.INCOMPLETE.format(
                    tariff_code=tariff_code,
                    last_valid_to=records[-1].valid_to.isoformat(),
                    expected_end=expected_end.isoformat() if expected_end else "unknown",
                )
            )

        _LOGGER.debug("Serving %d rates for %s after remote fetch", len(records), tariff_code)
        return await self._async_cache_and_return(tariff_code, records, now, SOURCE_REMOTE)

    async def _async_query_store(
        self,
        tariff_code: str,
        window_start: datetime,
    ) -> list[OctopusAgilePriceRecord] | None:
        """Query the record store; a read failure is logged and reported as None."""
        try:
            return await self._record_store.async_query(tariff_code, window_start)
        except Exception:
            _LOGGER.exception("Reading stored rates for %s failed, falling back to API", tariff_code)
            return None

    async def _async_cache_and_return(
        self,
        tariff_code: str,
        records: list[OctopusAgilePriceRecord],
        now: datetime,
        source: str,
    ) -> list[OctopusAgilePriceRecord]:
        async with self._lock:
            self._cache.store(tariff_code, records, now)
        self._record_source(source)
        return records

    def _record_source(self, source: str) -> None:
        self._last_source = source
        self._counters[source] += 1

    async def async_invalidate(self) -> None:
        """Drop the cached entry so the next request walks the cascade again."""
        async with self._lock:
            self._cache.invalidate()

    def next_refresh_at(self, now: datetime) -> datetime:
        """Return when new rates are expected (short delay if nothing is cached)."""
        return self._cache.next_refresh_at(now)

    def get_stats(self) -> dict[str, Any]:
        """Return cascade statistics for diagnostics."""
        entry = self._cache.entry
        return {
            "last_source": self._last_source,
            "served_from_cache": self._counters[SOURCE_CACHE],
            "served_from_store": self._counters[SOURCE_STORE],
            "served_from_remote": self._counters[SOURCE_REMOTE],
            "failures": self._counters["failures"],
            "in_flight": self._single_flight.in_flight_keys,
            "cache": {
                "tariff_code": entry.tariff_code,
                "records": len(entry.records),
                "fetched_at": entry.fetched_at.isoformat(),
                "fetched_after_cutoff": entry.fetched_after_cutoff,
                "next_refresh_at": entry.next_refresh_at.isoformat(),
            }
            if entry
            else None,
            "record_store": self._record_store.get_stats(),
        }

    async def async_shutdown(self) -> None:
        """Cancel running fetches (used on unload)."""
        await self._single_flight.async_cancel_all()
