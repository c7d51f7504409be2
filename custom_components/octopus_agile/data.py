"""Custom types for octopus_agile."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.loader import Integration

    from .api import OctopusAgileApiClient
    from .coordinator import OctopusAgileDataUpdateCoordinator
    from .rates.record_store import OctopusAgileRecordStore
    from .rates.repository import OctopusAgileRateRepository


@dataclass
class OctopusAgileData:
    """Data for the octopus_agile integration."""

    client: OctopusAgileApiClient
    coordinator: OctopusAgileDataUpdateCoordinator
    repository: OctopusAgileRateRepository
    record_store: OctopusAgileRecordStore
    integration: Integration


if TYPE_CHECKING:
    type OctopusAgileConfigEntry = ConfigEntry[OctopusAgileData]
