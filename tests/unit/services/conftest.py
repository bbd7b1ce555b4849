"""Shared fixtures for services test packages."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from hostresolve.resolve import RepairResult, ResolveCache, SweepResult


@pytest.fixture
def mock_cache() -> MagicMock:
    """ResolveCache mock whose maintenance methods return empty results."""
    cache = MagicMock(spec=ResolveCache)
    cache.run_cycle_repair = AsyncMock(return_value=RepairResult())
    cache.run_expiry_sweep = AsyncMock(return_value=SweepResult())
    cache.find_missing = AsyncMock(return_value=set())
    cache.clear_all = AsyncMock(return_value=0)
    return cache
