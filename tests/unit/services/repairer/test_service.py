"""Unit tests for services.repairer.service module.

Tests:
- Repairer initialization and factory methods
- One repair pass per run()
- Metrics reporting
- End-to-end over the in-memory engine
"""

from __future__ import annotations

from unittest.mock import call, patch

import pytest

from hostresolve.core.exceptions import StoreUnavailableError
from hostresolve.models.constants import ServiceName
from hostresolve.resolve import RepairResult
from hostresolve.services.repairer import Repairer, RepairerConfig


class TestRepairerInit:
    def test_init_with_defaults(self, mock_cache):
        repairer = Repairer(cache=mock_cache)
        assert repairer.cache is mock_cache
        assert repairer.SERVICE_NAME == ServiceName.REPAIRER
        assert repairer.config.interval == 60.0

    def test_from_dict(self, mock_cache):
        repairer = Repairer.from_dict({"interval": 15}, cache=mock_cache)
        assert repairer.config.interval == 15.0

    def test_config_class_attribute(self):
        assert Repairer.CONFIG_CLASS is RepairerConfig


class TestRepairerRun:
    async def test_run_calls_cycle_repair(self, mock_cache):
        await Repairer(cache=mock_cache).run()
        mock_cache.run_cycle_repair.assert_awaited_once()

    async def test_run_propagates_errors(self, mock_cache):
        mock_cache.run_cycle_repair.side_effect = StoreUnavailableError("down")
        with pytest.raises(StoreUnavailableError):
            await Repairer(cache=mock_cache).run()

    async def test_metrics_reported(self, mock_cache):
        mock_cache.run_cycle_repair.return_value = RepairResult(candidates=3, deleted=2, failed=1)
        repairer = Repairer(cache=mock_cache)

        with (
            patch.object(repairer, "set_gauge") as set_gauge,
            patch.object(repairer, "inc_counter") as inc_counter,
        ):
            await repairer.run()

        set_gauge.assert_has_calls([call("cycles_found", 3), call("repair_failed", 1)])
        inc_counter.assert_called_once_with("entries_repaired", 2)


class TestRepairerIntegration:
    async def test_repairs_memory_cache(self, cache, clock):
        await cache.write_resolved("a", "b")
        clock.advance(5)
        await cache.write_resolved("b", "a")

        await Repairer(cache=cache).run()

        assert await cache.read_resolved("a") is None
        assert await cache.read_resolved("b") == "a"
