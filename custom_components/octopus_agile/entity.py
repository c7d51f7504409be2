"""OctopusAgileEntity class."""

from __future__ import annotations

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .api.helpers import parse_tariff_code
from .const import ATTRIBUTION, DOMAIN
from .coordinator import OctopusAgileDataUpdateCoordinator
from .exceptions import OctopusAgileInvalidTariffCodeError


class OctopusAgileEntity(CoordinatorEntity[OctopusAgileDataUpdateCoordinator]):
    """OctopusAgileEntity class."""

    _attr_has_entity_name = True
    _attr_attribution = ATTRIBUTION

    def __init__(self, coordinator: OctopusAgileDataUpdateCoordinator) -> None:
        """Initialize."""
        super().__init__(coordinator)

        tariff_code = coordinator.tariff_code
        try:
            product_code, region = parse_tariff_code(tariff_code)
        except OctopusAgileInvalidTariffCodeError:
            product_code, region = None, None

        self._attr_device_info = DeviceInfo(
            entry_type=DeviceEntryType.SERVICE,
            identifiers={
                (
                    DOMAIN,
                    coordinator.config_entry.unique_id or coordinator.config_entry.entry_id,
                )
            },
            name=coordinator.config_entry.title,
            manufacturer="Octopus Energy",
            model=f"{product_code} (region {region})" if product_code else "Agile",
            serial_number=tariff_code,
            configuration_url="https://octopus.energy/smart/agile/",
        )

    @property
    def available(self) -> bool:
        """
        Return if entity is available.

        Entity is unavailable when:
        - Coordinator has not completed first update (no data yet)
        - The last refresh failed (no current rate is shown rather than a stale one)
        """
        return self.coordinator.last_update_success and bool(self.coordinator.data)
