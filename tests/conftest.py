"""Pytest fixtures for pricing and augmentation tests."""

import pytest

from src.database.cache import CacheLayer
from src.database.redis import RedisCache
from src.integrations.clients.mocks.sheets import InMemorySpreadsheet
from src.utils.rate_limiter import SheetThrottle

SBER_GRID = [
    ["", "МАКС", "ВСК", "Новая Страховая"],
    ["дом (дерево)", "0,004", "0,0045", ""],
    ["дом (кирпич)", "0,003", "", ""],
    ["квартира", "0,002", "0,0021", "0,0025"],
    ["титул", "0,001", "0,0012", ""],
    ["жизнь М", "", "", ""],
    ["30", "0,003", "0,0031", ""],
    ["31", "0,0032", "", ""],
    ["жизнь Ж", "", "", ""],
    ["30", "0,002", "0,0021", ""],
    ["кв имущество", "0,1", "0,12", ""],
    ["кв титул", "0,05", "", ""],
    ["кв жизнь", "0,2", "", ""],
]

VTB_GRID = [
    ["", "МАКС", "Югория"],
    ["квартира", "0,0018", "0,0019"],
    ["титул", "0.0009", ""],
]


class RecordingThrottle(SheetThrottle):
    """Counts waits without sleeping."""

    def __init__(self):
        super().__init__(min_delay=0.0, max_delay=0.0)
        self.waits = 0

    async def wait(self) -> None:
        self.waits += 1


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def spreadsheet():
    return InMemorySpreadsheet({"Сбербанк": SBER_GRID, "ВТБ": VTB_GRID})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """In-memory RedisCache stub with a controllable clock."""
    return RedisCache(clock=clock)


@pytest.fixture
def cache(store):
    return CacheLayer(store, base_ttl_seconds=60, max_jitter_seconds=0)


@pytest.fixture
def throttle():
    return RecordingThrottle()
