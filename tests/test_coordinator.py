"""Test coordinator refresh handling, timers and shutdown."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from custom_components.octopus_agile.const import (
    DEFAULT_AVERAGE_HOURS,
    DEFAULT_LOOKBACK_HOURS,
    RETRY_INTERVAL,
    UPDATE_INTERVAL,
)
from custom_components.octopus_agile.coordinator.core import OctopusAgileDataUpdateCoordinator
from custom_components.octopus_agile.exceptions import (
    OctopusAgileFetchFailedError,
    OctopusAgileInvalidTariffCodeError,
    OctopusAgileLocalDataIncompleteError,
)
from homeassistant.exceptions import ConfigEntryError
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from rate_factories import TARIFF, london, make_records

CORE = "custom_components.octopus_agile.coordinator.core"
NOW = london(2025, 1, 15, 16, 1)


def _make_coordinator(options: dict | None = None) -> OctopusAgileDataUpdateCoordinator:
    """Create a coordinator bypassing __init__."""
    coordinator = object.__new__(OctopusAgileDataUpdateCoordinator)
    coordinator.hass = MagicMock()
    coordinator.config_entry = MagicMock()
    coordinator.config_entry.options = options or {}
    coordinator.tariff_code = TARIFF
    coordinator.update_interval = UPDATE_INTERVAL
    coordinator.data = None
    coordinator._log = lambda *_a, **_kw: None  # noqa: SLF001
    coordinator._publication_timer_cancel = None  # noqa: SLF001
    coordinator._slot_timer_cancel = None  # noqa: SLF001
    coordinator._last_update_success_at = None  # noqa: SLF001
    coordinator._consecutive_failures = 0  # noqa: SLF001

    repository = MagicMock()
    repository.async_get_rates = AsyncMock(return_value=make_records(NOW, NOW + timedelta(hours=2)))
    repository.next_refresh_at = MagicMock(return_value=london(2025, 1, 16, 16))
    repository.last_source = "remote"
    repository.async_shutdown = AsyncMock()
    coordinator.repository = repository
    return coordinator


@pytest.mark.unit
def test_options_fall_back_to_defaults() -> None:
    """Unset options use the default lookback and average windows."""
    coordinator = _make_coordinator()
    assert coordinator.lookback_hours == DEFAULT_LOOKBACK_HOURS
    assert coordinator.average_hours == DEFAULT_AVERAGE_HOURS

    coordinator = _make_coordinator({"lookback_hours": 6, "average_hours": 3})
    assert coordinator.lookback_hours == 6
    assert coordinator.average_hours == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_successful_refresh_arms_timers() -> None:
    """A successful refresh returns the rates and schedules the publication and slot timers."""
    coordinator = _make_coordinator({"lookback_hours": 6})

    with (
        patch(f"{CORE}.dt_util.now", return_value=NOW),
        patch(f"{CORE}.async_track_point_in_utc_time", return_value=MagicMock()) as mock_point,
        patch(f"{CORE}.async_track_utc_time_change", return_value=MagicMock()) as mock_change,
    ):
        data = await coordinator._async_update_data()  # noqa: SLF001
        await coordinator._async_update_data()  # noqa: SLF001

    coordinator.repository.async_get_rates.assert_awaited_with(TARIFF, lookback_hours=6, now=NOW)
    assert data["tariff_code"] == TARIFF
    assert data["source"] == "remote"
    assert data["next_refresh_at"] == london(2025, 1, 16, 16)
    assert len(data["records"]) == 4
    assert coordinator.last_update_success_at == NOW

    # Publication timer is re-armed on every refresh, the slot timer only once
    assert mock_point.call_count == 2
    mock_point.return_value.assert_called_once()
    mock_change.assert_called_once()
    assert mock_change.call_args.kwargs == {"minute": (0, 30), "second": 0}


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        OctopusAgileFetchFailedError(RuntimeError("network down")),
        OctopusAgileLocalDataIncompleteError("incomplete"),
    ],
)
async def test_failed_refresh_switches_to_retry_interval(error: Exception) -> None:
    """Cascade failures raise UpdateFailed and shorten the polling interval until the next success."""
    coordinator = _make_coordinator()
    coordinator.repository.async_get_rates.side_effect = error

    with pytest.raises(UpdateFailed):
        await coordinator._async_update_data()  # noqa: SLF001

    assert coordinator.update_interval == RETRY_INTERVAL
    assert coordinator.consecutive_failures == 1

    coordinator.repository.async_get_rates.side_effect = None
    with (
        patch(f"{CORE}.async_track_point_in_utc_time", return_value=MagicMock()),
        patch(f"{CORE}.async_track_utc_time_change", return_value=MagicMock()),
    ):
        await coordinator._async_update_data()  # noqa: SLF001

    assert coordinator.update_interval == UPDATE_INTERVAL
    assert coordinator.consecutive_failures == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_tariff_code_is_a_config_error() -> None:
    """A malformed configured tariff code is not retried."""
    coordinator = _make_coordinator()
    coordinator.repository.async_get_rates.side_effect = OctopusAgileInvalidTariffCodeError("bad")

    with pytest.raises(ConfigEntryError):
        await coordinator._async_update_data()  # noqa: SLF001

    assert coordinator.consecutive_failures == 0


@pytest.mark.unit
def test_slot_boundary_updates_listeners_only_with_data() -> None:
    """The half-hour timer pushes state to entities without fetching."""
    coordinator = _make_coordinator()
    coordinator.async_update_listeners = MagicMock()

    coordinator._handle_slot_boundary(NOW)  # noqa: SLF001
    coordinator.async_update_listeners.assert_not_called()

    coordinator.data = {"records": []}
    coordinator._handle_slot_boundary(NOW)  # noqa: SLF001
    coordinator.async_update_listeners.assert_called_once()
    coordinator.repository.async_get_rates.assert_not_awaited()


@pytest.mark.unit
def test_publication_timer_requests_refresh() -> None:
    """The publication timer schedules a coordinator refresh."""
    coordinator = _make_coordinator()
    coordinator.async_request_refresh = MagicMock()
    coordinator._publication_timer_cancel = MagicMock()  # noqa: SLF001

    coordinator._handle_publication_refresh(NOW)  # noqa: SLF001

    assert coordinator._publication_timer_cancel is None  # noqa: SLF001
    coordinator.async_request_refresh.assert_called_once()
    coordinator.hass.async_create_task.assert_called_once()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shutdown_cancels_timers_and_fetches() -> None:
    """Unloading cancels both timers and running repository work."""
    coordinator = _make_coordinator()
    publication_cancel = MagicMock()
    slot_cancel = MagicMock()
    coordinator._publication_timer_cancel = publication_cancel  # noqa: SLF001
    coordinator._slot_timer_cancel = slot_cancel  # noqa: SLF001

    with patch.object(DataUpdateCoordinator, "async_shutdown", new=AsyncMock()) as mock_super_shutdown:
        await coordinator.async_shutdown()

    publication_cancel.assert_called_once()
    slot_cancel.assert_called_once()
    coordinator.repository.async_shutdown.assert_awaited_once()
    mock_super_shutdown.assert_awaited_once()
    assert coordinator._publication_timer_cancel is None  # noqa: SLF001
    assert coordinator._slot_timer_cancel is None  # noqa: SLF001
