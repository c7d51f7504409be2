"""
Config flow handlers for Octopus Agile Rates integration.

- user_flow.py: Initial setup (postcode or tariff code)
- options_flow.py: Lookback and average window options
- schemas.py: voluptuous schemas
- validators.py: Tariff resolution and option validation
"""

from __future__ import annotations

from custom_components.octopus_agile.config_flow_handlers.options_flow import (
    OctopusAgileOptionsFlowHandler,
)
from custom_components.octopus_agile.config_flow_handlers.schemas import (
    get_options_init_schema,
    get_user_schema,
)
from custom_components.octopus_agile.config_flow_handlers.user_flow import (
    OctopusAgileConfigFlowHandler,
)
from custom_components.octopus_agile.config_flow_handlers.validators import (
    OctopusAgileCannotConnectError,
    OctopusAgileInvalidPostcodeFlowError,
    OctopusAgileInvalidTariffFlowError,
    resolve_tariff,
    validate_average_hours,
    validate_lookback_hours,
)

__all__ = [
    "OctopusAgileCannotConnectError",
    "OctopusAgileConfigFlowHandler",
    "OctopusAgileInvalidPostcodeFlowError",
    "OctopusAgileInvalidTariffFlowError",
    "OctopusAgileOptionsFlowHandler",
    "get_options_init_schema",
    "get_user_schema",
    "resolve_tariff",
    "validate_average_hours",
    "validate_lookback_hours",
]
