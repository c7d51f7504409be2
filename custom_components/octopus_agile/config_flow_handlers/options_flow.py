"""Options flow for octopus_agile integration."""

from __future__ import annotations

import logging
from typing import Any

from custom_components.octopus_agile.config_flow_handlers.schemas import get_options_init_schema
from custom_components.octopus_agile.config_flow_handlers.validators import (
    validate_average_hours,
    validate_lookback_hours,
)
from custom_components.octopus_agile.const import (
    CONF_AVERAGE_HOURS,
    CONF_LOOKBACK_HOURS,
    CONF_TARIFF_CODE,
)
from homeassistant.config_entries import ConfigFlowResult, OptionsFlow

_LOGGER = logging.getLogger(__name__)


class OctopusAgileOptionsFlowHandler(OptionsFlow):
    """Handle options for octopus_agile entries."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Manage the options."""
        errors: dict[str, str] = {}

        if user_input is not None:
            if CONF_LOOKBACK_HOURS in user_input and not validate_lookback_hours(user_input[CONF_LOOKBACK_HOURS]):
                errors[CONF_LOOKBACK_HOURS] = "invalid_lookback_hours"
            if CONF_AVERAGE_HOURS in user_input and not validate_average_hours(user_input[CONF_AVERAGE_HOURS]):
                errors[CONF_AVERAGE_HOURS] = "invalid_average_hours"

            if not errors:
                _LOGGER.debug("Saving options for %s: %s", self.config_entry.title, user_input)
                return self.async_create_entry(title="", data={**self.config_entry.options, **user_input})

        return self.async_show_form(
            step_id="init",
            data_schema=get_options_init_schema(self.config_entry.options),
            description_placeholders={"tariff_code": self.config_entry.data.get(CONF_TARIFF_CODE, "N/A")},
            errors=errors,
        )
