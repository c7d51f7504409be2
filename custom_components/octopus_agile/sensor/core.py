"""Core sensor class for Octopus Agile Rates integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from custom_components.octopus_agile.const import LOWEST_SLOTS_COUNT
from custom_components.octopus_agile.entity import OctopusAgileEntity
from homeassistant.components.sensor import SensorEntity
from homeassistant.util import dt as dt_util

from .value_getters import get_record_for_key, get_value_getter_mapping

if TYPE_CHECKING:
    from datetime import datetime

    from custom_components.octopus_agile.coordinator import OctopusAgileDataUpdateCoordinator
    from homeassistant.components.sensor import SensorEntityDescription


class OctopusAgileSensor(OctopusAgileEntity, SensorEntity):
    """octopus_agile Sensor class."""

    # Attributes excluded from recorder history
    _unrecorded_attributes = frozenset(
        {
            "rates",
            "tariff_code",
            "window_hours",
            "slot_count",
        }
    )

    def __init__(
        self,
        coordinator: OctopusAgileDataUpdateCoordinator,
        entity_description: SensorEntityDescription,
    ) -> None:
        """Initialize the sensor class."""
        super().__init__(coordinator)
        self.entity_description = entity_description
        self._attr_unique_id = f"{coordinator.config_entry.entry_id}_{entity_description.key}"

    @property
    def native_value(self) -> float | str | datetime | None:
        """Return the native value of the sensor."""
        if not self.coordinator.data:
            return None

        getter = get_value_getter_mapping(
            self.coordinator.data,
            dt_util.now(),
            self.coordinator.average_hours,
        ).get(self.entity_description.key)
        if getter is None:
            return None

        try:
            return getter()
        except (KeyError, ValueError, TypeError):
            self.coordinator.logger.exception(
                "Error getting sensor value",
                extra={"entity": self.entity_description.key},
            )
            return None

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return additional state attributes."""
        if not self.coordinator.data:
            return None

        key = self.entity_description.key
        records = self.coordinator.data.get("records") or []
        now = dt_util.now()
        attributes: dict[str, Any] = {}

        record = get_record_for_key(key, records, now)
        if record is not None:
            attributes["valid_from"] = record.valid_from.isoformat()
            attributes["valid_to"] = record.valid_to.isoformat()
            attributes["value_exc_vat"] = float(record.value_exc_vat)

        if key == "current_rate":
            attributes["tariff_code"] = self.coordinator.tariff_code
            attributes["rates"] = [
                {
                    "valid_from": item.valid_from.isoformat(),
                    "valid_to": item.valid_to.isoformat(),
                    "value_inc_vat": float(item.value_inc_vat),
                }
                for item in records
            ]
        elif key == "average_upcoming_rate":
            attributes["window_hours"] = self.coordinator.average_hours
        elif key == "lowest_slots_average_rate":
            attributes["slot_count"] = LOWEST_SLOTS_COUNT

        return attributes or None
