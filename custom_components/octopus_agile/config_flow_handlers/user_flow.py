"""Main config flow for octopus_agile integration."""

from __future__ import annotations

from custom_components.octopus_agile.config_flow_handlers.options_flow import (
    OctopusAgileOptionsFlowHandler,
)
from custom_components.octopus_agile.config_flow_handlers.schemas import get_user_schema
from custom_components.octopus_agile.config_flow_handlers.validators import (
    OctopusAgileCannotConnectError,
    OctopusAgileInvalidPostcodeFlowError,
    OctopusAgileInvalidTariffFlowError,
    resolve_tariff,
)
from custom_components.octopus_agile.const import (
    CONF_POSTCODE,
    CONF_REGION,
    CONF_TARIFF_CODE,
    DEFAULT_NAME,
    DOMAIN,
    LOGGER,
)
from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.core import callback


class OctopusAgileConfigFlowHandler(ConfigFlow, domain=DOMAIN):
    """Config flow for octopus_agile."""

    VERSION = 1
    MINOR_VERSION = 0

    @staticmethod
    @callback
    def async_get_options_flow(_config_entry: ConfigEntry) -> OptionsFlow:
        """Create an options flow for this configentry."""
        return OctopusAgileOptionsFlowHandler()

    async def async_step_user(
        self,
        user_input: dict | None = None,
    ) -> ConfigFlowResult:
        """Handle a flow initialized by the user."""
        _errors = {}
        if user_input is not None:
            try:
                resolved = await resolve_tariff(
                    self.hass,
                    user_input.get(CONF_POSTCODE),
                    user_input.get(CONF_TARIFF_CODE),
                )
            except OctopusAgileInvalidTariffFlowError as exception:
                LOGGER.warning("Invalid tariff code: %s", exception.__cause__)
                _errors[CONF_TARIFF_CODE] = "invalid_tariff_code"
            except OctopusAgileInvalidPostcodeFlowError as exception:
                LOGGER.warning("Invalid postcode: %s", exception.__cause__)
                _errors[CONF_POSTCODE] = "invalid_postcode"
            except OctopusAgileCannotConnectError as exception:
                LOGGER.error("Cannot reach Octopus API: %s", exception.__cause__)
                _errors["base"] = "connection"
            else:
                tariff_code = resolved["tariff_code"]
                await self.async_set_unique_id(tariff_code)
                self._abort_if_unique_id_configured()

                return self.async_create_entry(
                    title=f"{DEFAULT_NAME} ({resolved['region']})",
                    data={
                        CONF_POSTCODE: resolved["postcode"],
                        CONF_REGION: resolved["region"],
                        CONF_TARIFF_CODE: tariff_code,
                    },
                )

        return self.async_show_form(
            step_id="user",
            data_schema=get_user_schema(user_input),
            errors=_errors,
        )
