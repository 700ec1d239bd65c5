"""Shared pytest fixtures for test modules."""

from __future__ import annotations

import pytest

from market_monitor.cache.storage import MemoryStorage
from market_monitor.cache.store import TtlCache
from tests.fakes.clock import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(storage: MemoryStorage, clock: FakeClock) -> TtlCache:
    return TtlCache(storage, clock=clock)
