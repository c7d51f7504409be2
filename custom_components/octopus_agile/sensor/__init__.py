"""
Sensor platform for Octopus Agile Rates integration.

Provides half-hourly rate sensors:
- Slot-based: current and next rate
- Upcoming statistics: lowest/highest/average over rates not yet ended
- Diagnostic: refresh timing and data source

See definitions.py for the complete sensor catalog.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .core import OctopusAgileSensor
from .definitions import ENTITY_DESCRIPTIONS

if TYPE_CHECKING:
    from custom_components.octopus_agile.data import OctopusAgileConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: OctopusAgileConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Octopus Agile sensors based on a config entry."""
    coordinator = entry.runtime_data.coordinator

    async_add_entities(
        OctopusAgileSensor(
            coordinator=coordinator,
            entity_description=entity_description,
        )
        for entity_description in ENTITY_DESCRIPTIONS
    )
