"""Shared fixtures for Octopus Agile tests."""

from __future__ import annotations

import pytest

from rate_factories import FakeStore


@pytest.fixture
def fake_store() -> FakeStore:
    """Create an empty fake store."""
    return FakeStore()
