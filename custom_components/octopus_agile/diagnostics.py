"""
Diagnostics support for octopus_agile.

Learn more about diagnostics:
https://developers.home-assistant.io/docs/core/integration_diagnostics
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.diagnostics import async_redact_data

from .const import CONF_POSTCODE

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .data import OctopusAgileConfigEntry

TO_REDACT = {CONF_POSTCODE}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant,  # noqa: ARG001
    entry: OctopusAgileConfigEntry,
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator = entry.runtime_data.coordinator
    repository = entry.runtime_data.repository
    data = coordinator.data or {}
    records = data.get("records") or []

    return {
        "entry": {
            "entry_id": entry.entry_id,
            "version": entry.version,
            "minor_version": entry.minor_version,
            "domain": entry.domain,
            "title": entry.title,
            "state": str(entry.state),
            "data": async_redact_data(dict(entry.data), TO_REDACT),
        },
        "coordinator": {
            "last_update_success": coordinator.last_update_success,
            "update_interval": str(coordinator.update_interval),
            "consecutive_failures": coordinator.consecutive_failures,
            "last_update_success_at": coordinator.last_update_success_at.isoformat()
            if coordinator.last_update_success_at
            else None,
            "next_refresh_at": data["next_refresh_at"].isoformat() if data.get("next_refresh_at") else None,
            "source": data.get("source"),
            "record_count": len(records),
            "first_valid_from": records[0].valid_from.isoformat() if records else None,
            "last_valid_to": records[-1].valid_to.isoformat() if records else None,
        },
        "repository": repository.get_stats(),
        "config": {
            "options": dict(entry.options),
        },
        "error": {
            "last_exception": str(coordinator.last_exception) if coordinator.last_exception else None,
        },
    }
