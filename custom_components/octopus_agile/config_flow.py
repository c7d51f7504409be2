"""
Config flow for Octopus Agile Rates integration.

This module serves as the entry point for Home Assistant's config flow discovery.
The actual implementation is in the config_flow_handlers package.
"""

from __future__ import annotations

from .config_flow_handlers.options_flow import (
    OctopusAgileOptionsFlowHandler as OptionsFlowHandler,
)
from .config_flow_handlers.user_flow import OctopusAgileConfigFlowHandler as ConfigFlow

__all__ = [
    "ConfigFlow",
    "OptionsFlowHandler",
]
