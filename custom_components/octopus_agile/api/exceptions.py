"""Custom exceptions for API client."""

from __future__ import annotations


class OctopusAgileApiClientError(Exception):
    """Exception to indicate a general API error."""

    UNKNOWN_ERROR = "Unknown Octopus API error"
    GENERIC_ERROR = "Something went wrong! {exception}"
    MALFORMED_RESPONSE_ERROR = "Malformed response for {endpoint}: {detail}"
    RATE_LIMIT_ERROR = "Rate limit exceeded. Please wait {retry_after} seconds before retrying"
    NOT_FOUND_ERROR = "Resource not found: {endpoint}"
    PRODUCT_NOT_FOUND_ERROR = "No Agile import product is currently available"
    REGION_NOT_AVAILABLE_ERROR = "Agile product {product_code} has no tariff for region {region}"


class OctopusAgileApiClientCommunicationError(OctopusAgileApiClientError):
    """Exception to indicate a communication error."""

    TIMEOUT_ERROR = "Timeout error fetching information - {exception}"
    CONNECTION_ERROR = "Error fetching information - {exception}"


class OctopusAgileApiClientInterruptedError(OctopusAgileApiClientCommunicationError):
    """Exception to indicate the request was interrupted in flight (disconnect, reset or timeout)."""

    INTERRUPTED_ERROR = "Request interrupted - {exception}"
