"""Errors raised by the rate repository and region resolver."""

from __future__ import annotations


class OctopusAgileError(Exception):
    """Base class for Octopus Agile errors."""


class OctopusAgileInvalidTariffCodeError(OctopusAgileError):
    """Exception to indicate an empty or malformed tariff code."""

    EMPTY = "Tariff code must not be empty"
    MALFORMED = "Malformed tariff code: {tariff_code}"


class OctopusAgileNoDataAvailableError(OctopusAgileError):
    """Exception to indicate that no source could provide sufficient rates."""

    NO_DATA = "No rates available for {tariff_code} after remote fetch"


class OctopusAgileLocalDataIncompleteError(OctopusAgileNoDataAvailableError):
    """Exception to indicate stored rates exist but do not reach the expected coverage end."""

    INCOMPLETE = "Rates for {tariff_code} end at {last_valid_to}, expected coverage until {expected_end}"


class OctopusAgileFetchFailedError(OctopusAgileError):
    """Exception wrapping a transport or decoding failure of the remote client."""

    def __init__(self, cause: BaseException) -> None:
        """Wrap the underlying API error."""
        super().__init__(f"Fetching rates failed: {cause}")
        self.cause = cause


class OctopusAgileInvalidPostcodeError(OctopusAgileError):
    """Exception to indicate that a postcode has no matching grid supply point."""

    INVALID = "No grid supply point found for postcode {postcode}"
    EMPTY = "Postcode must not be empty"
