"""Unit tests for resolve.repair module."""

from unittest.mock import AsyncMock

from hostresolve.core.exceptions import SerializationTimeoutError, StoreUnavailableError
from hostresolve.core.writer import SerializedWriter
from hostresolve.resolve import EntryStore, RepairResult, run_cycle_repair


class TestRunCycleRepair:
    async def test_clean_store(self, memory_backend):
        entries = EntryStore(memory_backend, SerializedWriter())
        await memory_backend.upsert_resolve("a", "b")
        assert await run_cycle_repair(memory_backend, entries) == RepairResult()

    async def test_deletes_early_side(self, memory_backend, clock):
        entries = EntryStore(memory_backend, SerializedWriter())
        await memory_backend.upsert_resolve("a", "b")
        clock.advance(5)
        await memory_backend.upsert_resolve("b", "a")

        result = await run_cycle_repair(memory_backend, entries)

        assert result == RepairResult(candidates=1, deleted=1, failed=0)
        assert set(memory_backend.resolves) == {"b"}

    async def test_equal_timestamps_keep_smaller_hostname(self, memory_backend):
        entries = EntryStore(memory_backend, SerializedWriter())
        await memory_backend.upsert_resolve("beta", "alpha")
        await memory_backend.upsert_resolve("alpha", "beta")

        await run_cycle_repair(memory_backend, entries)

        assert set(memory_backend.resolves) == {"alpha"}

    async def test_failure_isolated(self, memory_backend, clock):
        await memory_backend.upsert_resolve("a", "b")
        await memory_backend.upsert_resolve("x", "y")
        clock.advance(5)
        await memory_backend.upsert_resolve("b", "a")
        await memory_backend.upsert_resolve("y", "x")

        real_delete = memory_backend.delete_resolve

        async def flaky_delete(hostname: str) -> bool:
            if hostname == "a":
                raise StoreUnavailableError("down")
            return await real_delete(hostname)

        memory_backend.delete_resolve = flaky_delete
        entries = EntryStore(memory_backend, SerializedWriter())

        result = await run_cycle_repair(memory_backend, entries)

        assert result == RepairResult(candidates=2, deleted=1, failed=1)
        assert "x" not in memory_backend.resolves
        assert "a" in memory_backend.resolves

    async def test_serialization_timeout_counted(self, memory_backend, clock):
        await memory_backend.upsert_resolve("a", "b")
        clock.advance(1)
        await memory_backend.upsert_resolve("b", "a")
        entries = EntryStore(memory_backend, SerializedWriter())
        entries.delete_resolved = AsyncMock(  # type: ignore[method-assign]
            side_effect=SerializationTimeoutError("delete_resolved", "acquire", 1.0)
        )

        result = await run_cycle_repair(memory_backend, entries)

        assert result.failed == 1
        assert result.deleted == 0

    async def test_already_deleted_not_counted(self, memory_backend, clock):
        await memory_backend.upsert_resolve("a", "b")
        clock.advance(1)
        await memory_backend.upsert_resolve("b", "a")
        entries = EntryStore(memory_backend, SerializedWriter())
        entries.delete_resolved = AsyncMock(return_value=False)  # type: ignore[method-assign]

        result = await run_cycle_repair(memory_backend, entries)

        assert result == RepairResult(candidates=1, deleted=0, failed=0)
