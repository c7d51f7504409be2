"""Coordinator driving periodic rate refreshes through the rate repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.exceptions import ConfigEntryError
from homeassistant.helpers.event import async_track_point_in_utc_time, async_track_utc_time_change
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from custom_components.octopus_agile.const import (
    CONF_AVERAGE_HOURS,
    CONF_LOOKBACK_HOURS,
    CONF_TARIFF_CODE,
    DEFAULT_AVERAGE_HOURS,
    DEFAULT_LOOKBACK_HOURS,
    DOMAIN,
    RETRY_INTERVAL,
    UPDATE_INTERVAL,
)
from custom_components.octopus_agile.exceptions import (
    OctopusAgileError,
    OctopusAgileFetchFailedError,
    OctopusAgileInvalidTariffCodeError,
    OctopusAgileLocalDataIncompleteError,
)

from .constants import RATE_SLOT_BOUNDARIES

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.config_entries import ConfigEntry

    from custom_components.octopus_agile.rates.repository import OctopusAgileRateRepository

_LOGGER = logging.getLogger(__name__)


class OctopusAgileDataUpdateCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """
    Periodic refresh trigger for Agile rates.

    Three timers keep entities current:
    - Timer #1: HA's coordinator interval (15 min, 5 min after a failure)
    - Timer #2: One-shot refresh at the next expected publication
    - Timer #3: Half-hour slot boundaries, entity updates without fetching

    Every refresh goes through the repository cascade, so most runs are served
    from the in-memory cache without any I/O.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        repository: OctopusAgileRateRepository,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=UPDATE_INTERVAL,
        )

        self.repository = repository
        self.tariff_code: str = config_entry.data[CONF_TARIFF_CODE]
        self._log_prefix = f"[{config_entry.title}]"

        self._publication_timer_cancel: CALLBACK_TYPE | None = None
        self._slot_timer_cancel: CALLBACK_TYPE | None = None
        self._last_update_success_at: datetime | None = None
        self._consecutive_failures = 0

    def _log(self, level: str, message: str, *args: Any, **kwargs: Any) -> None:
        """Log with coordinator-specific prefix."""
        prefixed_message = f"{self._log_prefix} {message}"
        getattr(_LOGGER, level)(prefixed_message, *args, **kwargs)

    @property
    def lookback_hours(self) -> float:
        """Return the configured lookback window in hours."""
        return self.config_entry.options.get(CONF_LOOKBACK_HOURS, DEFAULT_LOOKBACK_HOURS)

    @property
    def average_hours(self) -> float:
        """Return the window of the average upcoming rate sensor in hours."""
        return self.config_entry.options.get(CONF_AVERAGE_HOURS, DEFAULT_AVERAGE_HOURS)

    @property
    def last_update_success_at(self) -> datetime | None:
        """Return when rates were last obtained successfully."""
        return self._last_update_success_at

    @property
    def consecutive_failures(self) -> int:
        """Return the number of failed refreshes since the last success."""
        return self._consecutive_failures

    async def _async_update_data(self) -> dict[str, Any]:
        """
        Obtain rates through the repository cascade (Timer #1 and #2).

        Raises:
            ConfigEntryError: The configured tariff code is invalid (not retried).
            UpdateFailed: Any other cascade failure; retried after RETRY_INTERVAL.

        """
        now = dt_util.now()
        self._log("debug", "[Timer #1] Refresh triggered")

        try:
            records = await self.repository.async_get_rates(
                self.tariff_code,
                lookback_hours=self.lookback_hours,
                now=now,
            )
        except OctopusAgileInvalidTariffCodeError as err:
            self._log("error", "Configured tariff code is invalid: %s", err)
            raise ConfigEntryError(str(err)) from err
        except OctopusAgileError as err:
            self._consecutive_failures += 1
            self.update_interval = RETRY_INTERVAL
            if isinstance(err, OctopusAgileFetchFailedError):
                self._log("warning", "Fetching rates failed, retrying in %s: %s", RETRY_INTERVAL, err.cause)
            elif isinstance(err, OctopusAgileLocalDataIncompleteError):
                self._log("info", "Published rates are incomplete, retrying in %s: %s", RETRY_INTERVAL, err)
            else:
                self._log("warning", "No rates available, retrying in %s: %s", RETRY_INTERVAL, err)
            raise UpdateFailed(str(err)) from err

        self._consecutive_failures = 0
        self._last_update_success_at = now
        self.update_interval = UPDATE_INTERVAL

        next_refresh_at = self.repository.next_refresh_at(now)
        self._schedule_publication_refresh(next_refresh_at)
        self._ensure_slot_timer()

        return {
            "tariff_code": self.tariff_code,
            "records": records,
            "updated_at": now,
            "next_refresh_at": next_refresh_at,
            "source": self.repository.last_source,
        }

    def _schedule_publication_refresh(self, when: datetime) -> None:
        """Arm Timer #2 to refresh right after the next expected publication."""
        if self._publication_timer_cancel:
            self._publication_timer_cancel()
            self._publication_timer_cancel = None

        self._publication_timer_cancel = async_track_point_in_utc_time(
            self.hass,
            self._handle_publication_refresh,
            dt_util.as_utc(when),
        )
        self._log("debug", "[Timer #2] Next publication refresh scheduled at %s", when.isoformat())

    @callback
    def _handle_publication_refresh(self, _now: datetime) -> None:
        self._publication_timer_cancel = None
        self._log("debug", "[Timer #2] Publication refresh triggered")
        self.hass.async_create_task(self.async_request_refresh())

    def _ensure_slot_timer(self) -> None:
        """Arm Timer #3 (idempotent)."""
        if self._slot_timer_cancel:
            return
        self._slot_timer_cancel = async_track_utc_time_change(
            self.hass,
            self._handle_slot_boundary,
            minute=RATE_SLOT_BOUNDARIES,
            second=0,
        )

    @callback
    def _handle_slot_boundary(self, _now: datetime) -> None:
        """Push the new current/next rate to entities without fetching."""
        if self.data:
            self._log("debug", "[Timer #3] Rate slot changed, updating entities")
            self.async_update_listeners()

    async def async_shutdown(self) -> None:
        """Cancel timers and running fetches."""
        if self._publication_timer_cancel:
            self._publication_timer_cancel()
            self._publication_timer_cancel = None
        if self._slot_timer_cancel:
            self._slot_timer_cancel()
            self._slot_timer_cancel = None

        await self.repository.async_shutdown()
        await super().async_shutdown()
