"""Tests for config flow validators."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from custom_components.octopus_agile.api import (
    OctopusAgileApiClientCommunicationError,
    OctopusAgileApiClientError,
)
from custom_components.octopus_agile.config_flow_handlers.validators import (
    OctopusAgileCannotConnectError,
    OctopusAgileInvalidPostcodeFlowError,
    OctopusAgileInvalidTariffFlowError,
    resolve_tariff,
    validate_average_hours,
    validate_lookback_hours,
)
from custom_components.octopus_agile.const import (
    DEFAULT_REGION,
    MAX_AVERAGE_HOURS,
    MAX_LOOKBACK_HOURS,
    MIN_AVERAGE_HOURS,
    MIN_LOOKBACK_HOURS,
)
from custom_components.octopus_agile.exceptions import OctopusAgileInvalidPostcodeError
from rate_factories import TARIFF

VALIDATORS = "custom_components.octopus_agile.config_flow_handlers.validators"


class TestLookbackValidation:
    """Test lookback window validation."""

    def test_bounds_are_inclusive(self) -> None:
        """Test minimum and maximum are accepted."""
        assert validate_lookback_hours(MIN_LOOKBACK_HOURS) is True
        assert validate_lookback_hours(MAX_LOOKBACK_HOURS) is True

    def test_out_of_range(self) -> None:
        """Test values outside the bounds are rejected."""
        assert validate_lookback_hours(MIN_LOOKBACK_HOURS - 1) is False
        assert validate_lookback_hours(MAX_LOOKBACK_HOURS + 1) is False


class TestAverageWindowValidation:
    """Test average window validation."""

    def test_half_hour_multiples(self) -> None:
        """Test windows are accepted in half-hour steps."""
        assert validate_average_hours(MIN_AVERAGE_HOURS) is True
        assert validate_average_hours(2.5) is True
        assert validate_average_hours(MAX_AVERAGE_HOURS) is True

    def test_invalid_windows(self) -> None:
        """Test windows off the half-hour grid or out of range."""
        assert validate_average_hours(1.25) is False
        assert validate_average_hours(0) is False
        assert validate_average_hours(MAX_AVERAGE_HOURS + 0.5) is False


def _patched_api(tariff_code: str = TARIFF, error: Exception | None = None) -> MagicMock:
    client = MagicMock()
    client.async_get_agile_tariff_code = AsyncMock(return_value=tariff_code, side_effect=error)
    return client


@pytest.mark.asyncio
class TestResolveTariff:
    """Test tariff resolution from the user step input."""

    async def test_explicit_tariff_code_wins(self) -> None:
        """Test an explicit code is normalized and no lookup is made."""
        with patch(f"{VALIDATORS}.OctopusAgileApiClient") as mock_client_cls:
            result = await resolve_tariff(MagicMock(), "SW1A 1AA", " e-1r-agile-24-10-01-h ")

        assert result == {"region": "H", "tariff_code": TARIFF, "postcode": "SW1A 1AA"}
        mock_client_cls.assert_not_called()

    async def test_malformed_tariff_code(self) -> None:
        """Test a malformed code is reported to the form."""
        with pytest.raises(OctopusAgileInvalidTariffFlowError):
            await resolve_tariff(MagicMock(), "", "AGILE-24-10-01")

    async def test_postcode_resolves_region_then_tariff(self) -> None:
        """Test the region from the postcode selects the tariff."""
        client = _patched_api("E-1R-AGILE-24-10-01-C")
        resolver = MagicMock()
        resolver.async_resolve = AsyncMock(return_value="C")

        with (
            patch(f"{VALIDATORS}.async_get_clientsession"),
            patch(f"{VALIDATORS}.OctopusAgileApiClient", return_value=client),
            patch(f"{VALIDATORS}.create_region_resolver", return_value=resolver),
        ):
            result = await resolve_tariff(MagicMock(), "sw1a 1aa", None)

        resolver.async_resolve.assert_awaited_once_with("SW1A 1AA")
        client.async_get_agile_tariff_code.assert_awaited_once_with("C")
        assert result == {"region": "C", "tariff_code": "E-1R-AGILE-24-10-01-C", "postcode": "SW1A 1AA"}

    async def test_empty_input_uses_default_region(self) -> None:
        """Test the default region applies without postcode or tariff."""
        client = _patched_api()

        with (
            patch(f"{VALIDATORS}.async_get_clientsession"),
            patch(f"{VALIDATORS}.OctopusAgileApiClient", return_value=client),
            patch(f"{VALIDATORS}.create_region_resolver") as mock_resolver,
        ):
            result = await resolve_tariff(MagicMock(), "", "")

        mock_resolver.assert_not_called()
        client.async_get_agile_tariff_code.assert_awaited_once_with(DEFAULT_REGION)
        assert result["region"] == DEFAULT_REGION

    async def test_unknown_postcode(self) -> None:
        """Test a postcode without grid supply point is reported to the form."""
        resolver = MagicMock()
        resolver.async_resolve = AsyncMock(side_effect=OctopusAgileInvalidPostcodeError("unknown"))

        with (
            patch(f"{VALIDATORS}.async_get_clientsession"),
            patch(f"{VALIDATORS}.OctopusAgileApiClient", return_value=_patched_api()),
            patch(f"{VALIDATORS}.create_region_resolver", return_value=resolver),
            pytest.raises(OctopusAgileInvalidPostcodeFlowError),
        ):
            await resolve_tariff(MagicMock(), "XX1 1XX", "")

    async def test_connection_failure(self) -> None:
        """Test API failures map to cannot connect."""
        client = _patched_api(error=OctopusAgileApiClientCommunicationError("down"))

        with (
            patch(f"{VALIDATORS}.async_get_clientsession"),
            patch(f"{VALIDATORS}.OctopusAgileApiClient", return_value=client),
            pytest.raises(OctopusAgileCannotConnectError),
        ):
            await resolve_tariff(MagicMock(), "", "")

    async def test_malformed_lookup_payload(self) -> None:
        """Test a lookup result without group id maps to cannot connect."""
        resolver = MagicMock()
        resolver.async_resolve = AsyncMock(side_effect=OctopusAgileApiClientError("no group_id"))

        with (
            patch(f"{VALIDATORS}.async_get_clientsession"),
            patch(f"{VALIDATORS}.OctopusAgileApiClient", return_value=_patched_api()),
            patch(f"{VALIDATORS}.create_region_resolver", return_value=resolver),
            pytest.raises(OctopusAgileCannotConnectError),
        ):
            await resolve_tariff(MagicMock(), "SW1A 1AA", "")
