"""
Pytest configuration and shared fixtures for hostresolve tests.

Provides:
- A controllable clock and an in-memory backend driven by it
- A ResolveCache over the in-memory backend
- A Store mock with AsyncMock query methods
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from hostresolve.core.store import Store, StoreConfig
from hostresolve.resolve import MemoryBackend, ResolveCache


START_TIME = 1_700_000_000


class FakeClock:
    """Callable clock returning a settable Unix time."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    @property
    def micros(self) -> int:
        """The current time as stored by the backends."""
        return round(self.now * 1_000_000)

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def advance_minutes(self, minutes: float) -> None:
        self.now += minutes * 60


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture(autouse=True)
def db_password(monkeypatch: pytest.MonkeyPatch) -> None:
    """Default pool configs read the password from the environment."""
    monkeypatch.setenv("DB_ADMIN_PASSWORD", "test_pass")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_backend(clock: FakeClock) -> MemoryBackend:
    return MemoryBackend(clock=clock)


@pytest.fixture
def cache(memory_backend: MemoryBackend) -> ResolveCache:
    return ResolveCache(memory_backend)


@pytest.fixture
def mock_store() -> MagicMock:
    """Store mock whose query methods return empty results."""
    store = MagicMock(spec=Store)
    store.config = StoreConfig()
    store.fetch = AsyncMock(return_value=[])
    store.fetchrow = AsyncMock(return_value=None)
    store.fetchval = AsyncMock(return_value=0)
    store.execute = AsyncMock(return_value="INSERT 0 1")
    return store
