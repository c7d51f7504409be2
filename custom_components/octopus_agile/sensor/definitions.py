"""
Sensor entity definitions for Octopus Agile Rates.

Sensor definitions are declarative and independent of the implementation
logic; value getters live in value_getters.py.

Organization:
    1. Slot-based: current and next half-hourly rate
    2. Upcoming statistics: lowest/highest/average over rates not yet ended
    3. Diagnostic: refresh timing and data source
"""

from __future__ import annotations

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.const import EntityCategory

RATE_UNIT = "p/kWh"

# ----------------------------------------------------------------------------
# 1. SLOT-BASED SENSORS
# ----------------------------------------------------------------------------

SLOT_RATE_SENSORS = (
    SensorEntityDescription(
        key="current_rate",
        translation_key="current_rate",
        name="Current Rate",
        icon="mdi:flash",
        native_unit_of_measurement=RATE_UNIT,
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=2,
    ),
    SensorEntityDescription(
        key="next_rate",
        translation_key="next_rate",
        name="Next Rate",
        icon="mdi:flash-outline",
        native_unit_of_measurement=RATE_UNIT,
        suggested_display_precision=2,
    ),
)

# ----------------------------------------------------------------------------
# 2. UPCOMING STATISTICS SENSORS
# ----------------------------------------------------------------------------

UPCOMING_RATE_SENSORS = (
    SensorEntityDescription(
        key="lowest_upcoming_rate",
        translation_key="lowest_upcoming_rate",
        name="Lowest Upcoming Rate",
        icon="mdi:arrow-collapse-down",
        native_unit_of_measurement=RATE_UNIT,
        suggested_display_precision=2,
    ),
    SensorEntityDescription(
        key="highest_upcoming_rate",
        translation_key="highest_upcoming_rate",
        name="Highest Upcoming Rate",
        icon="mdi:arrow-collapse-up",
        native_unit_of_measurement=RATE_UNIT,
        suggested_display_precision=2,
    ),
    SensorEntityDescription(
        key="average_upcoming_rate",
        translation_key="average_upcoming_rate",
        name="Average Upcoming Rate",
        icon="mdi:chart-line-variant",
        native_unit_of_measurement=RATE_UNIT,
        suggested_display_precision=2,
    ),
    SensorEntityDescription(
        key="lowest_slots_average_rate",
        translation_key="lowest_slots_average_rate",
        name="Cheapest Slots Average Rate",
        icon="mdi:piggy-bank-outline",
        native_unit_of_measurement=RATE_UNIT,
        suggested_display_precision=2,
    ),
)

# ----------------------------------------------------------------------------
# 3. DIAGNOSTIC SENSORS
# ----------------------------------------------------------------------------

DIAGNOSTIC_SENSORS = (
    SensorEntityDescription(
        key="next_refresh",
        translation_key="next_refresh",
        name="Next Rate Refresh",
        icon="mdi:calendar-clock",
        device_class=SensorDeviceClass.TIMESTAMP,
        entity_category=EntityCategory.DIAGNOSTIC,
    ),
    SensorEntityDescription(
        key="last_rate_update",
        translation_key="last_rate_update",
        name="Last Rate Update",
        icon="mdi:clock-check-outline",
        device_class=SensorDeviceClass.TIMESTAMP,
        entity_category=EntityCategory.DIAGNOSTIC,
    ),
    SensorEntityDescription(
        key="data_source",
        translation_key="data_source",
        name="Rate Data Source",
        icon="mdi:database-arrow-down",
        device_class=SensorDeviceClass.ENUM,
        options=["cache", "store", "remote"],
        entity_category=EntityCategory.DIAGNOSTIC,
        entity_registry_enabled_default=False,
    ),
)

ENTITY_DESCRIPTIONS = (
    *SLOT_RATE_SENSORS,
    *UPCOMING_RATE_SENSORS,
    *DIAGNOSTIC_SENSORS,
)
