"""Postcode to region letter resolution with persisted lookup caches."""

from __future__ import annotations

import asyncio
import errno
import logging
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from custom_components.octopus_agile.api.exceptions import (
    OctopusAgileApiClientError,
    OctopusAgileApiClientInterruptedError,
)
from custom_components.octopus_agile.api.helpers import region_from_group_id
from custom_components.octopus_agile.const import (
    REGION_LOOKUP_MAX_RETRIES,
    REGION_LOOKUP_RETRY_DELAY,
    REGION_STORAGE_KEY,
    STORAGE_VERSION,
)
from custom_components.octopus_agile.exceptions import OctopusAgileInvalidPostcodeError

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from custom_components.octopus_agile.api.client import OctopusAgileApiClient

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")


def normalize_postcode(postcode: str) -> str:
    """Return the lookup key for a postcode: trimmed and uppercased."""
    return postcode.strip().upper()


def create_region_resolver(hass: HomeAssistant, api: OctopusAgileApiClient) -> OctopusAgileRegionResolver:
    """Create a resolver whose caches are shared by all config entries."""
    store: Store = Store(hass, STORAGE_VERSION, REGION_STORAGE_KEY)
    return OctopusAgileRegionResolver(api, store)


class OctopusAgileRegionResolver:
    """
    Resolve UK postcodes to Octopus region letters.

    Known mappings and known-invalid postcodes are persisted, so a postcode is
    looked up remotely at most once. The two sets are kept disjoint.

    Storage format (version 1):
        {
            "valid": {"SW1A 1AA": "C"},
            "invalid": ["NOT A POSTCODE"]
        }
    """

    def __init__(
        self,
        api: OctopusAgileApiClient,
        store: Any,
        *,
        max_retries: int = REGION_LOOKUP_MAX_RETRIES,
        retry_delay: float = REGION_LOOKUP_RETRY_DELAY,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            api: Client used for grid supply point lookups.
            store: Object with async_load/async_save (a HA Store).
            max_retries: Retries after the first attempt on interrupted requests.
            retry_delay: Base delay in seconds, multiplied by the attempt number.

        """
        self._api = api
        self._store = store
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._valid: dict[str, str] = {}
        self._invalid: set[str] = set()
        self._loaded = False
        self._lock = asyncio.Lock()

    async def async_load(self) -> None:
        """Load persisted lookups (once)."""
        async with self._lock:
            await self._async_ensure_loaded()

    async def _async_ensure_loaded(self) -> None:
        if self._loaded:
            return

        try:
            stored = await self._store.async_load()
        except Exception:
            _LOGGER.exception("Failed to load region lookup storage, starting empty")
            stored = None

        if isinstance(stored, dict):
            valid = stored.get("valid")
            invalid = stored.get("invalid")
            if isinstance(valid, dict):
                self._valid = {str(key): str(value) for key, value in valid.items()}
            if isinstance(invalid, list):
                self._invalid = {str(item) for item in invalid} - self._valid.keys()
        elif stored is not None:
            _LOGGER.warning("Invalid region lookup storage structure, ignoring")

        self._loaded = True
        _LOGGER_DETAILS.debug(
            "Region lookups loaded: %d valid, %d invalid",
            len(self._valid),
            len(self._invalid),
        )

    async def async_resolve(self, postcode: str) -> str:
        """
        Return the region letter for a postcode.

        Args:
            postcode: UK postcode in any case, with or without surrounding spaces.

        Returns:
            Single region letter, e.g. "C".

        Raises:
            OctopusAgileInvalidPostcodeError: Empty postcode, or no grid supply point exists for it.
            OctopusAgileApiClientError: Lookup failed (after retries for interrupted requests) or returned no group id.

        """
        key = normalize_postcode(postcode)
        if not key:
            raise OctopusAgileInvalidPostcodeError(OctopusAgileInvalidPostcodeError.EMPTY)

        async with self._lock:
            await self._async_ensure_loaded()
            if key in self._invalid:
                _LOGGER.debug("Postcode %s is known to be invalid", key)
                raise OctopusAgileInvalidPostcodeError(OctopusAgileInvalidPostcodeError.INVALID.format(postcode=key))
            if key in self._valid:
                _LOGGER_DETAILS.debug("Postcode %s resolved from cache", key)
                return self._valid[key]

        payload = await self._async_lookup_with_retry(key)

        async with self._lock:
            if payload["count"] == 0 or not payload["results"]:
                self._invalid.add(key)
                self._valid.pop(key, None)
                await self._async_save()
                raise OctopusAgileInvalidPostcodeError(OctopusAgileInvalidPostcodeError.INVALID.format(postcode=key))

            first = payload["results"][0]
            group_id = first.get("group_id") if isinstance(first, dict) else None
            if not isinstance(group_id, str) or not group_id.strip("_ "):
                raise OctopusAgileApiClientError(
                    OctopusAgileApiClientError.MALFORMED_RESPONSE_ERROR.format(
                        endpoint="grid-supply-points", detail=f"no group_id for {key}"
                    )
                )

            region = region_from_group_id(group_id)
            self._valid[key] = region
            self._invalid.discard(key)
            await self._async_save()

        _LOGGER.debug("Postcode %s is in region %s", key, region)
        return region

    async def _async_lookup_with_retry(self, postcode: str) -> dict[str, Any]:
        """Call the lookup, retrying interrupted requests with linear backoff."""
        attempt = 0
        while True:
            try:
                return await self._api.async_get_grid_supply_points(postcode)
            except OctopusAgileApiClientInterruptedError as error:
                if attempt >= self._max_retries:
                    _LOGGER.warning("Region lookup for %s failed after %d retries", postcode, attempt)
                    raise
                attempt += 1
                delay = attempt * self._retry_delay
                _LOGGER.debug(
                    "Region lookup for %s interrupted (%s), retry %d/%d in %.1fs",
                    postcode,
                    error,
                    attempt,
                    self._max_retries,
                    delay,
                )
                await asyncio.sleep(delay)

    async def _async_save(self) -> None:
        data = {"valid": dict(self._valid), "invalid": sorted(self._invalid)}
        try:
            await self._store.async_save(data)
        except OSError as err:
            if err.errno == errno.ENOSPC:
                _LOGGER.exception("Cannot save region lookups: Disk full!")
            else:
                _LOGGER.exception("Failed to save region lookups")

    def get_stats(self) -> dict[str, int]:
        """Return cache sizes (for diagnostics)."""
        return {"valid": len(self._valid), "invalid": len(self._invalid)}
