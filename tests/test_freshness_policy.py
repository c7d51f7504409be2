"""
Tests for the publication-schedule freshness rules.

All times are given in Europe/London. January dates keep London equal to UTC,
July dates check that the cutoff follows British Summer Time.
"""

from datetime import UTC, datetime, timedelta

import pytest

from custom_components.octopus_agile.rates.freshness import OctopusAgileFreshnessPolicy
from custom_components.octopus_agile.rates.models import OctopusAgileCacheEntry, OctopusAgilePriceRecord
from rate_factories import TARIFF, london, make_records


@pytest.fixture
def policy() -> OctopusAgileFreshnessPolicy:
    """Create a policy with the default UK schedule."""
    return OctopusAgileFreshnessPolicy()


def _entry(fetched_at: datetime, *, after_cutoff: bool) -> OctopusAgileCacheEntry:
    return OctopusAgileCacheEntry(
        tariff_code=TARIFF,
        records=(),
        fetched_at=fetched_at,
        fetched_after_cutoff=after_cutoff,
        next_refresh_at=fetched_at + timedelta(hours=1),
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    ("hour", "minute"),
    [(0, 0), (9, 30), (15, 59)],
)
def test_expected_coverage_end_before_cutoff(policy: OctopusAgileFreshnessPolicy, hour: int, minute: int) -> None:
    """Before 16:00 rates are expected up to 23:00 today."""
    now = london(2025, 1, 15, hour, minute)
    assert policy.expected_coverage_end(now) == london(2025, 1, 15, 23)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("hour", "minute"),
    [(16, 0), (16, 1), (23, 59)],
)
def test_expected_coverage_end_after_cutoff(policy: OctopusAgileFreshnessPolicy, hour: int, minute: int) -> None:
    """At or after 16:00 rates are expected up to 23:00 tomorrow."""
    now = london(2025, 1, 15, hour, minute)
    assert policy.expected_coverage_end(now) == london(2025, 1, 16, 23)


@pytest.mark.unit
def test_cutoff_uses_reference_zone_not_utc(policy: OctopusAgileFreshnessPolicy) -> None:
    """15:30 UTC in July is 16:30 BST, which is after the cutoff."""
    now = datetime(2025, 7, 1, 15, 30, tzinfo=UTC)

    assert policy.is_after_cutoff(now) is True
    assert policy.expected_coverage_end(now) == london(2025, 7, 2, 23)


@pytest.mark.unit
def test_expected_coverage_end_at_month_boundary(policy: OctopusAgileFreshnessPolicy) -> None:
    """Tomorrow's coverage end rolls over into the next month."""
    assert policy.expected_coverage_end(london(2025, 1, 31, 17)) == london(2025, 2, 1, 23)


@pytest.mark.unit
def test_sufficient_when_records_reach_coverage_end(policy: OctopusAgileFreshnessPolicy) -> None:
    """Records ending exactly at 23:00 today are sufficient before the cutoff."""
    now = london(2025, 1, 15, 15, 59)
    records = make_records(london(2025, 1, 15, 0), london(2025, 1, 15, 23))

    assert policy.is_sufficient(records, now) is True


@pytest.mark.unit
def test_insufficient_after_cutoff_with_todays_records(policy: OctopusAgileFreshnessPolicy) -> None:
    """Yesterday's publication is not enough once today's cutoff passed."""
    now = london(2025, 1, 15, 16, 1)
    records = make_records(london(2025, 1, 15, 0), london(2025, 1, 15, 23))

    assert policy.is_sufficient(records, now) is False


@pytest.mark.unit
def test_sufficient_when_record_starts_within_tolerance(policy: OctopusAgileFreshnessPolicy) -> None:
    """A record starting 30 minutes before the boundary counts as reaching it."""
    now = london(2025, 1, 15, 10)
    record = OctopusAgilePriceRecord(
        tariff_code=TARIFF,
        valid_from=london(2025, 1, 15, 22, 30),
        valid_to=london(2025, 1, 15, 22, 45),
        value_exc_vat=1,
        value_inc_vat=1,
    )

    assert policy.is_sufficient([record], now) is True


@pytest.mark.unit
def test_insufficient_when_records_stop_early(policy: OctopusAgileFreshnessPolicy) -> None:
    """Records ending at 22:00 neither reach nor start near 23:00."""
    now = london(2025, 1, 15, 10)
    records = make_records(london(2025, 1, 15, 0), london(2025, 1, 15, 22))

    assert policy.is_sufficient(records, now) is False
    assert policy.is_sufficient([], now) is False


@pytest.mark.unit
def test_entry_fetched_today_before_cutoff_is_fresh_until_cutoff(policy: OctopusAgileFreshnessPolicy) -> None:
    """An entry fetched this morning stays fresh until 16:00."""
    entry = _entry(london(2025, 1, 15, 8), after_cutoff=False)

    assert policy.is_entry_fresh(entry, london(2025, 1, 15, 15, 59)) is True
    assert policy.is_entry_fresh(entry, london(2025, 1, 15, 16, 0)) is False


@pytest.mark.unit
def test_entry_fetched_after_yesterdays_cutoff_is_fresh_until_todays_cutoff(
    policy: OctopusAgileFreshnessPolicy,
) -> None:
    """Yesterday evening's fetch already contains today's rates."""
    entry = _entry(london(2025, 1, 14, 17), after_cutoff=True)

    assert policy.is_entry_fresh(entry, london(2025, 1, 15, 9)) is True
    assert policy.is_entry_fresh(entry, london(2025, 1, 15, 16, 5)) is False


@pytest.mark.unit
def test_entry_fetched_after_todays_cutoff_is_fresh_for_rest_of_day(policy: OctopusAgileFreshnessPolicy) -> None:
    """An entry fetched at 16:10 is fresh at 23:00 the same day."""
    entry = _entry(london(2025, 1, 15, 16, 10), after_cutoff=True)

    assert policy.is_entry_fresh(entry, london(2025, 1, 15, 23)) is True


@pytest.mark.unit
@pytest.mark.parametrize("after_cutoff", [True, False])
@pytest.mark.parametrize("now_hour", [9, 17])
def test_entry_older_than_one_day_is_never_fresh(
    policy: OctopusAgileFreshnessPolicy,
    after_cutoff: bool,  # noqa: FBT001
    now_hour: int,
) -> None:
    """Entries from two calendar days ago are stale regardless of the flag."""
    entry = _entry(london(2025, 1, 13, 17), after_cutoff=after_cutoff)

    assert policy.is_entry_fresh(entry, london(2025, 1, 15, now_hour)) is False


@pytest.mark.unit
def test_next_refresh_before_and_after_cutoff(policy: OctopusAgileFreshnessPolicy) -> None:
    """The next refresh is today's cutoff, or tomorrow's once it passed."""
    assert policy.next_refresh_at(london(2025, 1, 15, 10)) == london(2025, 1, 15, 16)
    assert policy.next_refresh_at(london(2025, 1, 15, 16)) == london(2025, 1, 16, 16)


@pytest.mark.unit
def test_unknown_time_zone_fails_safe() -> None:
    """Without a reference zone nothing is fresh and the next refresh is an hour away."""
    policy = OctopusAgileFreshnessPolicy(time_zone="Not/AZone")
    now = london(2025, 1, 15, 10)
    records = make_records(london(2025, 1, 15, 0), london(2025, 1, 16, 23))

    assert policy.expected_coverage_end(now) is None
    assert policy.is_sufficient(records, now) is False
    assert policy.is_entry_fresh(_entry(now, after_cutoff=True), now) is False
    assert policy.next_refresh_at(now) == now + timedelta(hours=1)
