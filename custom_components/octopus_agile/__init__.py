"""
Custom integration to track Octopus Energy Agile rates with Home Assistant.

Rates are obtained through a cache → local storage → API cascade, so the
API is only contacted when no fresh and complete data is held locally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.config_entries import ConfigEntryState
from homeassistant.const import Platform
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.loader import async_get_loaded_integration

from .api import OctopusAgileApiClient
from .const import LOGGER
from .coordinator import OctopusAgileDataUpdateCoordinator
from .data import OctopusAgileData
from .rates import OctopusAgileFreshnessPolicy, create_record_store
from .rates.record_store import get_storage_key
from .rates.repository import OctopusAgileRateRepository

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .data import OctopusAgileConfigEntry

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
]


# https://developers.home-assistant.io/docs/config_entries_index/#setting-up-an-entry
async def async_setup_entry(
    hass: HomeAssistant,
    entry: OctopusAgileConfigEntry,
) -> bool:
    """Set up this integration using UI."""
    LOGGER.debug("[%s] async_setup_entry called for entry_id=%s", entry.title, entry.entry_id)

    integration = async_get_loaded_integration(hass, entry.domain)

    api_client = OctopusAgileApiClient(session=async_get_clientsession(hass))
    record_store = create_record_store(hass, entry.entry_id)
    repository = OctopusAgileRateRepository(
        api=api_client,
        record_store=record_store,
        policy=OctopusAgileFreshnessPolicy(),
    )

    coordinator = OctopusAgileDataUpdateCoordinator(
        hass=hass,
        config_entry=entry,
        repository=repository,
    )

    entry.runtime_data = OctopusAgileData(
        client=api_client,
        coordinator=coordinator,
        repository=repository,
        record_store=record_store,
        integration=integration,
    )

    # https://developers.home-assistant.io/docs/integration_fetching_data#coordinated-single-api-poll-for-data-for-all-entities
    if entry.state == ConfigEntryState.SETUP_IN_PROGRESS:
        await coordinator.async_config_entry_first_refresh()
        entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    else:
        await coordinator.async_refresh()

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def async_unload_entry(
    hass: HomeAssistant,
    entry: OctopusAgileConfigEntry,
) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok and entry.runtime_data is not None:
        await entry.runtime_data.coordinator.async_shutdown()

    return unload_ok


async def async_remove_entry(
    hass: HomeAssistant,
    entry: OctopusAgileConfigEntry,
) -> None:
    """Handle removal of an entry."""
    record_store = create_record_store(hass, entry.entry_id)
    await record_store.async_remove()
    LOGGER.debug("[%s] async_remove_entry removed %s", entry.title, get_storage_key(entry.entry_id))


async def async_reload_entry(
    hass: HomeAssistant,
    entry: OctopusAgileConfigEntry,
) -> None:
    """Reload config entry."""
    await hass.config_entries.async_reload(entry.entry_id)
