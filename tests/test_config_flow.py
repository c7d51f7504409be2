"""Tests for the user and options flow steps."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest

from custom_components.octopus_agile.config_flow_handlers.options_flow import OctopusAgileOptionsFlowHandler
from custom_components.octopus_agile.config_flow_handlers.user_flow import OctopusAgileConfigFlowHandler
from custom_components.octopus_agile.config_flow_handlers.validators import (
    OctopusAgileCannotConnectError,
    OctopusAgileInvalidPostcodeFlowError,
    OctopusAgileInvalidTariffFlowError,
)
from custom_components.octopus_agile.const import (
    CONF_AVERAGE_HOURS,
    CONF_LOOKBACK_HOURS,
    CONF_POSTCODE,
    CONF_REGION,
    CONF_TARIFF_CODE,
)
from rate_factories import TARIFF

USER_FLOW = "custom_components.octopus_agile.config_flow_handlers.user_flow"


def _make_user_flow() -> OctopusAgileConfigFlowHandler:
    """Create a user flow with form helpers mocked out."""
    flow = OctopusAgileConfigFlowHandler()
    flow.hass = MagicMock()
    flow.async_show_form = MagicMock(return_value={"type": "form"})
    flow.async_create_entry = MagicMock(return_value={"type": "create_entry"})
    flow.async_set_unique_id = AsyncMock()
    flow._abort_if_unique_id_configured = MagicMock()  # noqa: SLF001
    return flow


@pytest.mark.asyncio
class TestUserStep:
    """Test the user step."""

    async def test_shows_form_without_input(self) -> None:
        """Test the form is shown with no errors."""
        flow = _make_user_flow()

        await flow.async_step_user()

        assert flow.async_show_form.call_args.kwargs["errors"] == {}

    @pytest.mark.parametrize(
        ("error", "field", "key"),
        [
            (OctopusAgileInvalidTariffFlowError(), CONF_TARIFF_CODE, "invalid_tariff_code"),
            (OctopusAgileInvalidPostcodeFlowError(), CONF_POSTCODE, "invalid_postcode"),
            (OctopusAgileCannotConnectError(), "base", "connection"),
        ],
    )
    async def test_errors_are_shown_on_form(self, error: Exception, field: str, key: str) -> None:
        """Test resolution failures map to form errors."""
        flow = _make_user_flow()

        with patch(f"{USER_FLOW}.resolve_tariff", AsyncMock(side_effect=error)):
            await flow.async_step_user({CONF_POSTCODE: "SW1A 1AA"})

        assert flow.async_show_form.call_args.kwargs["errors"] == {field: key}
        flow.async_create_entry.assert_not_called()

    async def test_creates_entry_keyed_by_tariff(self) -> None:
        """Test a resolved tariff creates an entry with the tariff as unique id."""
        flow = _make_user_flow()
        resolved = {"region": "H", "tariff_code": TARIFF, "postcode": "SW1A 1AA"}

        with patch(f"{USER_FLOW}.resolve_tariff", AsyncMock(return_value=resolved)):
            await flow.async_step_user({CONF_POSTCODE: "sw1a 1aa"})

        flow.async_set_unique_id.assert_awaited_once_with(TARIFF)
        kwargs = flow.async_create_entry.call_args.kwargs
        assert kwargs["title"].endswith("(H)")
        assert kwargs["data"] == {CONF_POSTCODE: "SW1A 1AA", CONF_REGION: "H", CONF_TARIFF_CODE: TARIFF}


def _make_options_flow(options: dict | None = None) -> tuple[OctopusAgileOptionsFlowHandler, MagicMock]:
    """Create an options flow and the config entry it edits."""
    flow = OctopusAgileOptionsFlowHandler()
    flow.async_show_form = MagicMock(return_value={"type": "form"})
    flow.async_create_entry = MagicMock(return_value={"type": "create_entry"})
    entry = MagicMock()
    entry.title = "Octopus Agile (H)"
    entry.options = options or {}
    entry.data = {CONF_TARIFF_CODE: TARIFF}
    return flow, entry


@pytest.mark.asyncio
class TestOptionsStep:
    """Test the options step."""

    async def test_invalid_values_are_rejected(self) -> None:
        """Test out-of-range lookback and off-grid average windows show errors."""
        flow, entry = _make_options_flow()

        with patch.object(OctopusAgileOptionsFlowHandler, "config_entry", new_callable=PropertyMock) as mock_entry:
            mock_entry.return_value = entry
            await flow.async_step_init({CONF_LOOKBACK_HOURS: 100, CONF_AVERAGE_HOURS: 1.25})

        assert flow.async_show_form.call_args.kwargs["errors"] == {
            CONF_LOOKBACK_HOURS: "invalid_lookback_hours",
            CONF_AVERAGE_HOURS: "invalid_average_hours",
        }
        flow.async_create_entry.assert_not_called()

    async def test_valid_values_are_merged_into_options(self) -> None:
        """Test valid input is saved on top of existing options."""
        flow, entry = _make_options_flow({CONF_LOOKBACK_HOURS: 12, "other": True})

        with patch.object(OctopusAgileOptionsFlowHandler, "config_entry", new_callable=PropertyMock) as mock_entry:
            mock_entry.return_value = entry
            await flow.async_step_init({CONF_AVERAGE_HOURS: 3.5})

        flow.async_create_entry.assert_called_once_with(
            title="",
            data={CONF_LOOKBACK_HOURS: 12, "other": True, CONF_AVERAGE_HOURS: 3.5},
        )
