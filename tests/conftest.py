"""Shared fixtures: every test gets a fresh runtime."""

import pytest

from recordcache.cache import CacheRuntime
from recordcache.records import InMemoryRecordStore
from recordcache.settings import CacheSettings


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings():
    return CacheSettings(default_ttl_seconds=60, observed_namespace="database")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runtime(settings):
    return CacheRuntime(settings=settings)


@pytest.fixture
def clocked_runtime(settings, clock):
    return CacheRuntime(settings=settings, clock=clock)


@pytest.fixture
def records():
    return InMemoryRecordStore(
        {
            "INVENTORY": {
                "FURNITURE": [
                    ["Item #", "Description", "Qty"],
                    ["CHAIR-01", "Folding chair", 40],
                    ["TABLE-02", "Banquet table", 12],
                ],
                "LIGHTING": [
                    ["Item #", "Description", "Qty"],
                    ["LAMP-01", "Floor lamp", 6],
                ],
            },
            "PACK_LISTS": {
                "TEMPLATE": [["Piece #", "Type"]],
            },
        }
    )
