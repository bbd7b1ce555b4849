"""Integration tests for PostgresBackend against a real PostgreSQL.

Tests exercise the SQL in resolve.queries and the constraints of the
schema in deployments/postgres/init.
"""

from __future__ import annotations

import pytest

from hostresolve.core.exceptions import ConstraintViolationError
from hostresolve.core.store import Store
from hostresolve.models import InstanceKey, ResolveEntry
from hostresolve.resolve import PostgresBackend
from hostresolve.resolve.backend import CyclicPair


pytestmark = pytest.mark.integration


async def _history_row(store: Store, resolved_hostname: str):
    return await store.fetchrow(
        "SELECT * FROM hostname_resolve_history WHERE resolved_hostname = $1",
        resolved_hostname,
    )


# ============================================================================
# Forward Upsert
# ============================================================================


class TestForwardUpsert:
    async def test_insert_then_update(self, backend: PostgresBackend):
        await backend.upsert_resolve("a", "b")
        await backend.upsert_resolve("a", "c")
        assert await backend.fetch_resolved("a") == "c"
        assert len(await backend.fetch_all_resolves()) == 1

    async def test_fetch_missing(self, backend: PostgresBackend):
        assert await backend.fetch_resolved("nope") is None

    async def test_timestamps_are_microseconds(self, backend: PostgresBackend, store: Store):
        await backend.upsert_resolve("a", "b")
        first = (await backend.fetch_all_resolves())[0].resolved_at
        await backend.upsert_resolve("a", "b")
        second = (await backend.fetch_all_resolves())[0].resolved_at

        server_now = await store.fetchval("SELECT (EXTRACT(EPOCH FROM NOW()) * 1000000)::BIGINT")
        assert first > 1_600_000_000 * 1_000_000
        assert second > first
        assert server_now - second < 60 * 1_000_000


# ============================================================================
# Forward History
# ============================================================================


class TestResolveHistory:
    async def test_coalesce_keeps_first_seen(self, backend: PostgresBackend, store: Store):
        await backend.upsert_resolve_history("vip-1", "backend")
        first = await _history_row(store, "backend")
        await backend.upsert_resolve_history("vip-2", "backend")
        second = await _history_row(store, "backend")

        assert second["hostname"] == "vip-2"
        assert second["first_seen_at"] == first["first_seen_at"]
        assert second["resolved_at"] > first["resolved_at"]

    async def test_insert_sets_both_timestamps_equal(self, backend: PostgresBackend, store: Store):
        await backend.upsert_resolve_history("vip", "backend")
        row = await _history_row(store, "backend")
        assert row["first_seen_at"] == row["resolved_at"]

    async def test_self_hostname_does_not_replace_writer(
        self, backend: PostgresBackend, store: Store
    ):
        await backend.upsert_resolve_history("vip", "backend")
        await backend.upsert_resolve_history("backend", "backend")
        assert (await _history_row(store, "backend"))["hostname"] == "vip"

    async def test_delete_all_keeps_history(self, backend: PostgresBackend, store: Store):
        await backend.upsert_resolve("vip", "backend")
        await backend.upsert_resolve_history("vip", "backend")
        assert await backend.delete_all_resolves() == 1
        assert await _history_row(store, "backend") is not None


# ============================================================================
# Cyclic Pairs
# ============================================================================


class TestCyclicPairs:
    async def test_newer_side_is_latest(self, backend: PostgresBackend):
        await backend.upsert_resolve("a", "b")
        await backend.upsert_resolve("b", "a")
        pairs = await backend.fetch_cyclic_pairs()
        assert len(pairs) == 1
        assert pairs[0].latest.hostname == "b"
        assert pairs[0].early.hostname == "a"

    async def test_equal_timestamps_smaller_hostname_is_latest(
        self, backend: PostgresBackend, store: Store
    ):
        await backend.upsert_resolve("b", "a")
        await backend.upsert_resolve("a", "b")
        await store.execute("UPDATE hostname_resolve SET resolved_at = 1000")
        assert await backend.fetch_cyclic_pairs() == [
            CyclicPair(ResolveEntry("a", "b", 1000), ResolveEntry("b", "a", 1000))
        ]

    async def test_self_map_and_chain_ignored(self, backend: PostgresBackend):
        await backend.upsert_resolve("s", "s")
        await backend.upsert_resolve("x", "y")
        await backend.upsert_resolve("y", "z")
        assert await backend.fetch_cyclic_pairs() == []


# ============================================================================
# Expiry Cutoffs
# ============================================================================


class TestExpiryCutoff:
    async def test_forward_cutoff_in_minutes(self, backend: PostgresBackend, age_row):
        await backend.upsert_resolve("old", "x")
        await backend.upsert_resolve("new", "y")
        await age_row("hostname_resolve", "old", 6)
        await age_row("hostname_resolve", "new", 4)

        assert await backend.delete_resolves_older_than(5) == 1
        assert await backend.fetch_resolved("old") is None
        assert await backend.fetch_resolved("new") == "y"

    async def test_reverse_cutoff_in_minutes(self, backend: PostgresBackend, age_row):
        await backend.upsert_unresolve("old", "10.0.0.1", 80)
        await backend.upsert_unresolve("new", "10.0.0.2", 80)
        await age_row("hostname_unresolve", "old", 3)
        await age_row("hostname_unresolve", "new", 1)

        assert await backend.delete_unresolves_older_than(2) == 1
        assert await backend.fetch_unresolved("new") == "10.0.0.2"

    async def test_sub_minute_age_survives(self, backend: PostgresBackend, age_row):
        await backend.upsert_unresolve("h", "10.0.0.1", 80)
        await age_row("hostname_unresolve", "h", 0.5)
        assert await backend.delete_unresolves_older_than(1) == 0


# ============================================================================
# Reverse Store
# ============================================================================


class TestReverse:
    async def test_heartbeat_moves_timestamp(self, backend: PostgresBackend, store: Store):
        query = "SELECT last_registered_at FROM hostname_unresolve WHERE hostname = $1"
        await backend.upsert_unresolve("h", "10.0.0.1", 80)
        before = await store.fetchval(query, "h")
        await backend.upsert_unresolve("h", "10.0.0.1", 80)
        assert await store.fetchval(query, "h") > before

    async def test_history_replaced_per_pair(self, backend: PostgresBackend, store: Store):
        await backend.replace_unresolve_history("h", "10.0.0.1")
        await backend.replace_unresolve_history("h", "10.0.0.1")
        await backend.replace_unresolve_history("h", "10.0.0.2")
        assert await store.fetchval("SELECT count(*) FROM hostname_unresolve_history") == 2

    async def test_delete_reports_existence(self, backend: PostgresBackend):
        await backend.upsert_unresolve("h", "10.0.0.1", 80)
        assert await backend.delete_unresolve("h") is True
        assert await backend.delete_unresolve("h") is False

    async def test_missing_keys(self, backend: PostgresBackend):
        await backend.upsert_unresolve("backend-1", "10.0.0.1", 5432)
        await backend.upsert_unresolve("backend-2", "10.0.0.2", 5433)
        await backend.upsert_resolve("vip", "backend-1")
        assert await backend.fetch_missing_keys() == {InstanceKey("10.0.0.2", 5433)}


# ============================================================================
# Schema Constraints
# ============================================================================


class TestConstraints:
    async def test_port_out_of_range(self, backend: PostgresBackend):
        with pytest.raises(ConstraintViolationError):
            await backend.upsert_unresolve("h", "10.0.0.1", 0)

    async def test_history_resolved_before_first_seen(self, store: Store):
        with pytest.raises(ConstraintViolationError):
            await store.execute(
                """
                INSERT INTO hostname_resolve_history
                    (hostname, resolved_hostname, first_seen_at, resolved_at)
                VALUES ('a', 'b', 20, 10)
                """
            )

    async def test_one_row_per_hostname(self, backend: PostgresBackend, store: Store):
        await backend.upsert_resolve("a", "b")
        with pytest.raises(ConstraintViolationError):
            await store.execute(
                "INSERT INTO hostname_resolve (hostname, resolved_hostname, resolved_at)"
                " VALUES ('a', 'c', 1)"
            )
