"""Persistent rate record store backed by Home Assistant storage."""

from __future__ import annotations

import asyncio
import errno
import logging
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from custom_components.octopus_agile.const import RECORD_RETENTION, RECORD_STORAGE_KEY, STORAGE_VERSION

from .models import OctopusAgilePriceRecord, sort_records

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")


def get_storage_key(entry_id: str) -> str:
    """
    Get storage key for the record store of a config entry.

    Args:
        entry_id: Home Assistant config entry ID

    Returns:
        Storage key string

    """
    return f"{RECORD_STORAGE_KEY}.{entry_id}"


def create_record_store(hass: HomeAssistant, entry_id: str) -> OctopusAgileRecordStore:
    """Create a record store persisted under the entry's storage key."""
    store: Store = Store(hass, STORAGE_VERSION, get_storage_key(entry_id))
    return OctopusAgileRecordStore(store)


class OctopusAgileRecordStore:
    """
    Durable store of price records keyed by (tariff_code, valid_from).

    Records are held in memory after the first load and written back to the
    backing store after every upsert. Upserts are idempotent: storing the same
    record twice leaves one copy.

    Storage format (version 1):
        {
            "tariffs": {
                "E-1R-AGILE-24-10-01-H": [record.to_dict(), ...]
            }
        }
    """

    def __init__(self, store: Any, *, retention: Any = RECORD_RETENTION) -> None:
        """
        Initialize the record store.

        Args:
            store: Object with async_load/async_save/async_remove (a HA Store).
            retention: How long records are kept after they ended.

        """
        self._store = store
        self._retention = retention
        self._records: dict[str, dict[datetime, OctopusAgilePriceRecord]] = {}
        self._loaded = False
        self._lock = asyncio.Lock()

    async def _async_ensure_loaded(self) -> None:
        if self._loaded:
            return

        try:
            stored = await self._store.async_load()
        except Exception:
            # Corrupted storage file, JSON parse error, or other exception
            _LOGGER.exception("Failed to load rate storage (corrupted file?), starting empty")
            stored = None

        self._records = _parse_stored(stored)
        self._loaded = True
        _LOGGER.debug(
            "Rate storage loaded: %d tariff(s), %d record(s)",
            len(self._records),
            sum(len(records) for records in self._records.values()),
        )

    async def async_query(
        self,
        tariff_code: str,
        start: datetime,
        end: datetime | None = None,
    ) -> list[OctopusAgilePriceRecord]:
        """
        Return records of tariff_code overlapping [start, end), ordered by valid_from.

        Args:
            tariff_code: Tariff to query.
            start: Start of range (inclusive, timezone-aware).
            end: End of range (exclusive). None means unbounded.

        """
        async with self._lock:
            await self._async_ensure_loaded()
            records = self._records.get(tariff_code, {})
            return sort_records(record for record in records.values() if record.overlaps(start, end))

    async def async_upsert(self, records: Iterable[OctopusAgilePriceRecord], *, now: datetime | None = None) -> int:
        """
        Insert or replace records and persist the result.

        Args:
            records: Records to store. Existing records with the same key are replaced.
            now: If given, records that ended before now - retention are dropped.

        Returns:
            Number of records written.

        """
        async with self._lock:
            await self._async_ensure_loaded()
            written = 0
            for record in records:
                self._records.setdefault(record.tariff_code, {})[record.valid_from] = record
                written += 1

            if now is not None:
                self._purge_before(now - self._retention)

            await self._async_save()

        _LOGGER_DETAILS.debug("Upserted %d rate record(s)", written)
        return written

    def _purge_before(self, cutoff: datetime) -> None:
        for tariff_code in list(self._records):
            kept = {key: record for key, record in self._records[tariff_code].items() if record.valid_to >= cutoff}
            if kept:
                self._records[tariff_code] = kept
            else:
                del self._records[tariff_code]

    async def _async_save(self) -> None:
        data = self.to_dict()
        try:
            await self._store.async_save(data)
        except OSError as err:
            # Provide specific error messages based on errno
            if err.errno == errno.ENOSPC:  # Disk full
                _LOGGER.exception("Cannot save rate storage: Disk full!")
            elif err.errno == errno.EACCES:  # Permission denied
                _LOGGER.exception("Cannot save rate storage: Permission denied!")
            else:
                _LOGGER.exception("Failed to save rate storage")

    async def async_remove(self) -> None:
        """Delete all records and the backing file (used when the entry is removed)."""
        async with self._lock:
            self._records = {}
            self._loaded = True
            try:
                await self._store.async_remove()
                _LOGGER.debug("Rate storage removed")
            except OSError as ex:
                _LOGGER.warning("Failed to remove rate storage: %s", ex)

    def to_dict(self) -> dict[str, Any]:
        """Serialize all records for storage."""
        return {
            "tariffs": {
                tariff_code: [record.to_dict() for record in sort_records(records.values())]
                for tariff_code, records in self._records.items()
            }
        }

    def get_stats(self) -> dict[str, Any]:
        """Return record counts and ranges per tariff (for diagnostics)."""
        stats: dict[str, Any] = {}
        for tariff_code, records in self._records.items():
            ordered = sort_records(records.values())
            stats[tariff_code] = {
                "count": len(ordered),
                "first_valid_from": ordered[0].valid_from.isoformat() if ordered else None,
                "last_valid_to": ordered[-1].valid_to.isoformat() if ordered else None,
            }
        return stats


def _parse_stored(stored: Any) -> dict[str, dict[datetime, OctopusAgilePriceRecord]]:
    """Validate the stored structure and rebuild records, skipping invalid ones."""
    if stored is None:
        _LOGGER.debug("No rate storage found (first run)")
        return {}

    if not isinstance(stored, dict) or not isinstance(stored.get("tariffs"), dict):
        _LOGGER.warning("Invalid rate storage structure (missing tariffs), ignoring")
        return {}

    parsed: dict[str, dict[datetime, OctopusAgilePriceRecord]] = {}
    skipped = 0
    for tariff_code, raw_records in stored["tariffs"].items():
        if not isinstance(raw_records, list):
            skipped += 1
            continue
        for raw in raw_records:
            try:
                record = OctopusAgilePriceRecord.from_dict(raw)
            except (KeyError, TypeError, ValueError, ArithmeticError):
                skipped += 1
                continue
            parsed.setdefault(tariff_code, {})[record.valid_from] = record

    if skipped:
        _LOGGER.warning("Skipped %d invalid entries in rate storage", skipped)
    return parsed
