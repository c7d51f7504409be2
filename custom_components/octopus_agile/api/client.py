"""Octopus Energy REST API client."""

from __future__ import annotations

import logging
import socket
from typing import TYPE_CHECKING, Any

import aiohttp

from custom_components.octopus_agile.const import API_BASE_URL, API_MAX_PAGES, API_PAGE_SIZE, API_REQUEST_TIMEOUT

from .exceptions import (
    OctopusAgileApiClientCommunicationError,
    OctopusAgileApiClientError,
    OctopusAgileApiClientInterruptedError,
)
from .helpers import (
    extract_tariff_code,
    find_agile_product,
    parse_rate_results,
    parse_tariff_code,
    verify_response_or_raise,
)

if TYPE_CHECKING:
    from datetime import datetime

    from custom_components.octopus_agile.rates.models import OctopusAgilePriceRecord

_LOGGER = logging.getLogger(__name__)
_LOGGER_API_DETAILS = logging.getLogger(__name__ + ".details")


class OctopusAgileApiClient:
    """
    Stateless client for the public Octopus Energy API.

    No authentication is needed for the endpoints used here. Every request has
    a total timeout; transport failures are mapped onto the API exception
    hierarchy, with interruptions (disconnect, reset, timeout) distinguishable
    from other communication errors so callers can decide whether to retry.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str = API_BASE_URL,
        request_timeout: float = API_REQUEST_TIMEOUT,
    ) -> None:
        """Octopus API Client."""
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout

    async def async_get_standard_unit_rates(
        self,
        tariff_code: str,
        *,
        period_from: datetime | None = None,
        period_to: datetime | None = None,
    ) -> list[OctopusAgilePriceRecord]:
        """
        Fetch half-hourly unit rates for a tariff, following pagination.

        Args:
            tariff_code: Tariff code, e.g. "E-1R-AGILE-24-10-01-H".
            period_from: Only rates valid from this moment on.
            period_to: Only rates valid before this moment.

        Returns:
            Price records ordered as returned by the API (newest first).

        Raises:
            OctopusAgileInvalidTariffCodeError: If the tariff code is malformed.
            OctopusAgileApiClientError: On HTTP, transport or decoding errors.

        """
        product_code, _region = parse_tariff_code(tariff_code)
        url: str | None = (
            f"{self._base_url}/products/{product_code}/electricity-tariffs/{tariff_code}/standard-unit-rates/"
        )
        params: dict[str, Any] | None = {"page_size": API_PAGE_SIZE}
        if period_from is not None:
            params["period_from"] = period_from.isoformat()
        if period_to is not None:
            params["period_to"] = period_to.isoformat()

        records: list[OctopusAgilePriceRecord] = []
        pages = 0
        while url and pages < API_MAX_PAGES:
            payload = await self._async_get_json(url, params=params)
            records.extend(parse_rate_results(tariff_code, _require(payload, "results", url)))
            pages += 1
            # "next" already carries the query string
            url = payload.get("next")
            params = None

        if url:
            _LOGGER.warning("Stopped following rate pages for %s after %d pages", tariff_code, pages)

        _LOGGER.debug("Fetched %d rates for %s in %d page(s)", len(records), tariff_code, pages)
        return records

    async def async_get_grid_supply_points(self, postcode: str) -> dict[str, Any]:
        """
        Look up the grid supply point group for a postcode.

        Returns:
            The raw payload: {"count": int, "results": [{"group_id": "_C"}, ...]}.

        """
        payload = await self._async_get_json(
            f"{self._base_url}/industry/grid-supply-points/",
            params={"postcode": postcode},
        )
        if not isinstance(payload.get("count"), int) or not isinstance(payload.get("results"), list):
            raise OctopusAgileApiClientError(
                OctopusAgileApiClientError.MALFORMED_RESPONSE_ERROR.format(
                    endpoint="grid-supply-points", detail="missing count or results"
                )
            )
        return payload

    async def async_get_agile_tariff_code(self, region: str) -> str:
        """
        Discover the current Agile import tariff code for a region.

        Raises:
            OctopusAgileApiClientError: If no Agile product or no tariff for the region exists.

        """
        listing = await self._async_get_json(f"{self._base_url}/products/", params={"brand": "OCTOPUS_ENERGY"})
        product = find_agile_product(_require(listing, "results", "products"))
        product_code = product["code"]
        _LOGGER.debug("Found Agile product %s", product_code)

        detail = await self._async_get_json(f"{self._base_url}/products/{product_code}/")
        tariff_code = extract_tariff_code(detail, region)
        _LOGGER.debug("Agile tariff for region %s is %s", region, tariff_code)
        return tariff_code

    async def _async_get_json(self, url: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Make a GET request with error handling for network issues."""
        _LOGGER_API_DETAILS.debug("GET %s params=%s", url, params)

        try:
            timeout = aiohttp.ClientTimeout(total=self._request_timeout)
            response = await self._session.get(url, params=params, timeout=timeout)
            verify_response_or_raise(response)
            payload = await response.json()

        except aiohttp.ContentTypeError as error:
            _LOGGER.exception("Unexpected content type in API response")
            raise OctopusAgileApiClientError(
                OctopusAgileApiClientError.MALFORMED_RESPONSE_ERROR.format(endpoint=url, detail=str(error))
            ) from error

        except aiohttp.ClientResponseError as error:
            _LOGGER.exception("HTTP error during API request")
            raise OctopusAgileApiClientCommunicationError(
                OctopusAgileApiClientCommunicationError.CONNECTION_ERROR.format(exception=str(error))
            ) from error

        except aiohttp.ServerDisconnectedError as error:
            _LOGGER.warning("Server disconnected during request: %s", error)
            raise OctopusAgileApiClientInterruptedError(
                OctopusAgileApiClientInterruptedError.INTERRUPTED_ERROR.format(exception=str(error))
            ) from error

        except aiohttp.ClientConnectionResetError as error:
            _LOGGER.warning("Connection reset during request: %s", error)
            raise OctopusAgileApiClientInterruptedError(
                OctopusAgileApiClientInterruptedError.INTERRUPTED_ERROR.format(exception=str(error))
            ) from error

        except TimeoutError as error:
            _LOGGER.warning(
                "Request timeout after %s seconds - slow network or server overload",
                self._request_timeout,
            )
            raise OctopusAgileApiClientInterruptedError(
                OctopusAgileApiClientInterruptedError.TIMEOUT_ERROR.format(exception=str(error))
            ) from error

        except aiohttp.ClientConnectorError as error:
            _LOGGER.exception("Connection error - server unreachable or network down")
            raise OctopusAgileApiClientCommunicationError(
                OctopusAgileApiClientCommunicationError.CONNECTION_ERROR.format(exception=str(error))
            ) from error

        except aiohttp.ClientError as error:
            _LOGGER.exception("Client error during API request")
            raise OctopusAgileApiClientCommunicationError(
                OctopusAgileApiClientCommunicationError.CONNECTION_ERROR.format(exception=str(error))
            ) from error

        except socket.gaierror as error:
            _LOGGER.exception("DNS resolution failed - check internet connection")
            raise OctopusAgileApiClientCommunicationError(
                OctopusAgileApiClientCommunicationError.CONNECTION_ERROR.format(exception=str(error))
            ) from error

        except ValueError as error:
            _LOGGER.exception("Invalid JSON in API response")
            raise OctopusAgileApiClientError(
                OctopusAgileApiClientError.MALFORMED_RESPONSE_ERROR.format(endpoint=url, detail=str(error))
            ) from error

        if not isinstance(payload, dict):
            raise OctopusAgileApiClientError(
                OctopusAgileApiClientError.MALFORMED_RESPONSE_ERROR.format(endpoint=url, detail="expected an object")
            )

        _LOGGER_API_DETAILS.debug("Received API response from %s", url)
        return payload


def _require(payload: dict[str, Any], key: str, endpoint: str) -> Any:
    """Return payload[key] or raise a malformed response error."""
    if key not in payload:
        raise OctopusAgileApiClientError(
            OctopusAgileApiClientError.MALFORMED_RESPONSE_ERROR.format(endpoint=endpoint, detail=f"missing {key}")
        )
    return payload[key]
