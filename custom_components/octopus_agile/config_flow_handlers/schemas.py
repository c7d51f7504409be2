"""Schema definitions for octopus_agile config flow."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

import voluptuous as vol

from custom_components.octopus_agile.const import (
    CONF_AVERAGE_HOURS,
    CONF_LOOKBACK_HOURS,
    CONF_POSTCODE,
    CONF_TARIFF_CODE,
    DEFAULT_AVERAGE_HOURS,
    DEFAULT_LOOKBACK_HOURS,
    MAX_AVERAGE_HOURS,
    MAX_LOOKBACK_HOURS,
    MIN_AVERAGE_HOURS,
    MIN_LOOKBACK_HOURS,
)
from homeassistant.helpers.selector import (
    NumberSelector,
    NumberSelectorConfig,
    NumberSelectorMode,
    TextSelector,
    TextSelectorConfig,
    TextSelectorType,
)


def get_user_schema(user_input: Mapping[str, Any] | None = None) -> vol.Schema:
    """Return schema for user step (postcode and optional tariff code)."""
    user_input = user_input or {}
    return vol.Schema(
        {
            vol.Optional(
                CONF_POSTCODE,
                description={"suggested_value": user_input.get(CONF_POSTCODE)},
            ): TextSelector(TextSelectorConfig(type=TextSelectorType.TEXT)),
            vol.Optional(
                CONF_TARIFF_CODE,
                description={"suggested_value": user_input.get(CONF_TARIFF_CODE)},
            ): TextSelector(TextSelectorConfig(type=TextSelectorType.TEXT)),
        }
    )


def get_options_init_schema(options: Mapping[str, Any]) -> vol.Schema:
    """Return schema for options init step."""
    return vol.Schema(
        {
            vol.Optional(
                CONF_LOOKBACK_HOURS,
                default=options.get(CONF_LOOKBACK_HOURS, DEFAULT_LOOKBACK_HOURS),
            ): NumberSelector(
                NumberSelectorConfig(
                    min=MIN_LOOKBACK_HOURS,
                    max=MAX_LOOKBACK_HOURS,
                    step=1,
                    unit_of_measurement="h",
                    mode=NumberSelectorMode.SLIDER,
                ),
            ),
            vol.Optional(
                CONF_AVERAGE_HOURS,
                default=options.get(CONF_AVERAGE_HOURS, DEFAULT_AVERAGE_HOURS),
            ): NumberSelector(
                NumberSelectorConfig(
                    min=MIN_AVERAGE_HOURS,
                    max=MAX_AVERAGE_HOURS,
                    step=0.5,
                    unit_of_measurement="h",
                    mode=NumberSelectorMode.BOX,
                ),
            ),
        }
    )
