"""Validation functions for Octopus Agile config flow."""

from __future__ import annotations

from typing import TYPE_CHECKING

from custom_components.octopus_agile.api import (
    OctopusAgileApiClient,
    OctopusAgileApiClientError,
)
from custom_components.octopus_agile.api.helpers import parse_tariff_code
from custom_components.octopus_agile.const import (
    DEFAULT_REGION,
    MAX_AVERAGE_HOURS,
    MAX_LOOKBACK_HOURS,
    MIN_AVERAGE_HOURS,
    MIN_LOOKBACK_HOURS,
)
from custom_components.octopus_agile.exceptions import (
    OctopusAgileInvalidPostcodeError,
    OctopusAgileInvalidTariffCodeError,
)
from custom_components.octopus_agile.region import create_region_resolver, normalize_postcode
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.aiohttp_client import async_get_clientsession

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class OctopusAgileInvalidPostcodeFlowError(HomeAssistantError):
    """Error to indicate the postcode has no grid supply point."""


class OctopusAgileInvalidTariffFlowError(HomeAssistantError):
    """Error to indicate a malformed tariff code."""


class OctopusAgileCannotConnectError(HomeAssistantError):
    """Error to indicate we cannot connect."""


async def resolve_tariff(hass: HomeAssistant, postcode: str | None, tariff_code: str | None) -> dict[str, str]:
    """
    Determine region and tariff code from user input.

    An explicit tariff code wins; its region is taken from the code. Otherwise the
    region is resolved from the postcode (DEFAULT_REGION if none is given) and the
    current Agile tariff for that region is discovered.

    Args:
        hass: Home Assistant instance
        postcode: UK postcode, may be empty
        tariff_code: Explicit tariff code, may be empty

    Returns:
        dict with "region", "tariff_code" and the normalized "postcode"

    Raises:
        OctopusAgileInvalidTariffFlowError: Tariff code is malformed
        OctopusAgileInvalidPostcodeFlowError: Postcode has no grid supply point
        OctopusAgileCannotConnectError: API connection failed

    """
    normalized = normalize_postcode(postcode or "")
    code = (tariff_code or "").strip().upper()

    if code:
        try:
            _product, region = parse_tariff_code(code)
        except OctopusAgileInvalidTariffCodeError as exception:
            raise OctopusAgileInvalidTariffFlowError from exception
        return {"region": region, "tariff_code": code, "postcode": normalized}

    client = OctopusAgileApiClient(session=async_get_clientsession(hass))
    try:
        if normalized:
            resolver = create_region_resolver(hass, client)
            region = await resolver.async_resolve(normalized)
        else:
            region = DEFAULT_REGION
        code = await client.async_get_agile_tariff_code(region)
    except OctopusAgileInvalidPostcodeError as exception:
        raise OctopusAgileInvalidPostcodeFlowError from exception
    except OctopusAgileApiClientError as exception:
        raise OctopusAgileCannotConnectError from exception

    return {"region": region, "tariff_code": code, "postcode": normalized}


def validate_lookback_hours(hours: float) -> bool:
    """
    Validate lookback window is within bounds.

    Args:
        hours: Lookback window in hours

    Returns:
        True if MIN_LOOKBACK_HOURS <= hours <= MAX_LOOKBACK_HOURS

    """
    return MIN_LOOKBACK_HOURS <= hours <= MAX_LOOKBACK_HOURS


def validate_average_hours(hours: float) -> bool:
    """Validate the average window is within bounds and a multiple of half an hour."""
    return MIN_AVERAGE_HOURS <= hours <= MAX_AVERAGE_HOURS and (hours * 2).is_integer()
