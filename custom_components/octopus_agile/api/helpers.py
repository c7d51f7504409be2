"""Helper functions for API response processing."""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from homeassistant.util import dt as dt_utils

from custom_components.octopus_agile.exceptions import OctopusAgileInvalidTariffCodeError
from custom_components.octopus_agile.rates.models import OctopusAgilePriceRecord

from .exceptions import OctopusAgileApiClientError

if TYPE_CHECKING:
    import aiohttp

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")

HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429
HTTP_INTERNAL_SERVER_ERROR = 500
HTTP_BAD_GATEWAY = 502
HTTP_SERVICE_UNAVAILABLE = 503
HTTP_GATEWAY_TIMEOUT = 504

# E-1R-AGILE-24-10-01-H: fuel, register count, product code, region letter
TARIFF_CODE_PATTERN = re.compile(r"^E-(?P<registers>\d)R-(?P<product>[A-Z0-9]+(?:-[A-Z0-9]+)*)-(?P<region>[A-Z])$")
AGILE_PRODUCT_PREFIX = "AGILE-"


def verify_response_or_raise(response: aiohttp.ClientResponse) -> None:
    """
    Verify HTTP response and map to appropriate exceptions.

    Error Mapping:
    - 404 Not Found → ApiClientError (unknown product or tariff)
    - 429 Rate Limit → ApiClientError
    - 5xx Server Errors → aiohttp.ClientResponseError (becomes CommunicationError)
    - Other errors → Let aiohttp.raise_for_status() handle
    """
    if response.status == HTTP_NOT_FOUND:
        _LOGGER.error("Octopus API returned 404 for %s", response.url)
        raise OctopusAgileApiClientError(OctopusAgileApiClientError.NOT_FOUND_ERROR.format(endpoint=response.url))

    if response.status == HTTP_TOO_MANY_REQUESTS:
        retry_after = response.headers.get("Retry-After", "unknown")
        _LOGGER.warning("Octopus API rate limit exceeded - retry after %s seconds", retry_after)
        raise OctopusAgileApiClientError(OctopusAgileApiClientError.RATE_LIMIT_ERROR.format(retry_after=retry_after))

    if response.status in (
        HTTP_INTERNAL_SERVER_ERROR,
        HTTP_BAD_GATEWAY,
        HTTP_SERVICE_UNAVAILABLE,
        HTTP_GATEWAY_TIMEOUT,
    ):
        _LOGGER.warning("Octopus API server error %d - temporary issue", response.status)

    response.raise_for_status()


def parse_tariff_code(tariff_code: str | None) -> tuple[str, str]:
    """
    Split a tariff code into product code and region letter.

    Args:
        tariff_code: Code like "E-1R-AGILE-24-10-01-H".

    Returns:
        Tuple of (product_code, region), e.g. ("AGILE-24-10-01", "H").

    Raises:
        OctopusAgileInvalidTariffCodeError: If the code is empty or malformed.

    """
    if not tariff_code or not tariff_code.strip():
        raise OctopusAgileInvalidTariffCodeError(OctopusAgileInvalidTariffCodeError.EMPTY)

    match = TARIFF_CODE_PATTERN.match(tariff_code.strip())
    if match is None:
        raise OctopusAgileInvalidTariffCodeError(
            OctopusAgileInvalidTariffCodeError.MALFORMED.format(tariff_code=tariff_code)
        )
    return match.group("product"), match.group("region")


def build_tariff_code(product_code: str, region: str, registers: int = 1) -> str:
    """Build a single-register electricity tariff code from its parts."""
    return f"E-{registers}R-{product_code}-{region}"


def region_from_group_id(group_id: str) -> str:
    """Derive the region letter from a grid supply point group id ("_C" -> "C")."""
    return group_id.replace("_", "")


def parse_rate_results(tariff_code: str, results: list[Any]) -> list[OctopusAgilePriceRecord]:
    """
    Convert standard-unit-rates results into price records.

    Entries without a closed validity interval or with unparsable values are
    skipped. Values are converted through str() so binary float noise does not
    leak into the Decimal.

    Raises:
        OctopusAgileApiClientError: If results is not a list.

    """
    if not isinstance(results, list):
        raise OctopusAgileApiClientError(
            OctopusAgileApiClientError.MALFORMED_RESPONSE_ERROR.format(
                endpoint="standard-unit-rates", detail="results is not a list"
            )
        )

    records: list[OctopusAgilePriceRecord] = []
    skipped = 0
    for item in results:
        try:
            valid_from = dt_utils.parse_datetime(item["valid_from"])
            valid_to = dt_utils.parse_datetime(item["valid_to"]) if item.get("valid_to") else None
            if valid_from is None or valid_to is None:
                skipped += 1
                continue
            records.append(
                OctopusAgilePriceRecord(
                    tariff_code=tariff_code,
                    valid_from=valid_from,
                    valid_to=valid_to,
                    value_exc_vat=Decimal(str(item["value_exc_vat"])),
                    value_inc_vat=Decimal(str(item["value_inc_vat"])),
                )
            )
        except (KeyError, TypeError, ValueError, InvalidOperation):
            skipped += 1

    if skipped:
        _LOGGER.debug("Skipped %d malformed rate entries for %s", skipped, tariff_code)
    _LOGGER_DETAILS.debug("Parsed %d rate records for %s", len(records), tariff_code)
    return records


def find_agile_product(products: list[Any]) -> dict[str, Any]:
    """
    Return the first Agile import product from a products listing.

    Raises:
        OctopusAgileApiClientError: If no Agile import product is listed.

    """
    for product in products:
        if not isinstance(product, dict):
            continue
        code = product.get("code", "")
        if code.startswith(AGILE_PRODUCT_PREFIX) and product.get("direction") == "IMPORT":
            return product
    raise OctopusAgileApiClientError(OctopusAgileApiClientError.PRODUCT_NOT_FOUND_ERROR)


def extract_tariff_code(product_detail: dict[str, Any], region: str) -> str:
    """
    Read the direct debit tariff code for a region from a product detail payload.

    Raises:
        OctopusAgileApiClientError: If the product has no tariff for the region.

    """
    product_code = product_detail.get("code", "unknown")
    tariffs = product_detail.get("single_register_electricity_tariffs") or {}
    try:
        return tariffs[f"_{region}"]["direct_debit_monthly"]["code"]
    except (KeyError, TypeError) as error:
        raise OctopusAgileApiClientError(
            OctopusAgileApiClientError.REGION_NOT_AVAILABLE_ERROR.format(product_code=product_code, region=region)
        ) from error
