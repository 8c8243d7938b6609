"""Shared test fixtures for the menu comparison service."""

from unittest.mock import patch

import pytest

from menu_compare.analytics.store import clear_events
from menu_compare.catalog.data_store import clear_directory_cache
from menu_compare.search.models import ComparisonRecord
from menu_compare.service.sessions import clear_coordinators
from menu_compare.storage.persisted_store import MemoryArea, PersistedStore
from menu_compare.usage.ledger import UsageLedger

from .factories import make_comparison


@pytest.fixture(autouse=True)
def isolated_state():
    """Keep every test on in-memory storage and empty process-wide registries."""
    clear_coordinators()
    clear_events()
    clear_directory_cache()
    with patch("menu_compare.service.sessions.area_for_user", side_effect=lambda sid: MemoryArea()):
        yield
    clear_coordinators()


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger(clock) -> UsageLedger:
    return UsageLedger(PersistedStore(MemoryArea()), clock=clock)


@pytest.fixture
def comparisons() -> list[ComparisonRecord]:
    """Five menu items covering every price category."""
    return [
        make_comparison("کباب", 100_000, 90_000),      # tf cheaper, high savings
        make_comparison("پیتزا", 60_000, 50_000),      # tf cheaper, high savings
        make_comparison("آش", 30_000, 32_000),         # sf cheaper
        make_comparison("چلوکباب", 45_000, 45_000),    # same price
        make_comparison("بستنی", 20_000, 27_000),      # sf cheaper, high savings
    ]
