"""
Unit tests for resolve.queries module.

Tests:
- SQL statements target the right tables and conflict keys
- Parameters and timeouts passed to the Store
- Row mapping into models, skipping invalid rows
"""

from hostresolve.models import InstanceKey, ResolveEntry
from hostresolve.resolve import queries
from hostresolve.resolve.backend import CyclicPair


def _sql(mock_method) -> str:
    return " ".join(mock_method.await_args.args[0].split())


class TestForwardQueries:
    async def test_upsert_resolve(self, mock_store):
        await queries.upsert_resolve(mock_store, "a", "b")
        sql = _sql(mock_store.execute)
        assert "INSERT INTO hostname_resolve" in sql
        assert "ON CONFLICT (hostname) DO UPDATE" in sql
        assert "(EXTRACT(EPOCH FROM NOW()) * 1000000)::BIGINT" in sql
        assert mock_store.execute.await_args.args[1:] == ("a", "b")

    async def test_upsert_resolve_history(self, mock_store):
        await queries.upsert_resolve_history(mock_store, "a", "b")
        sql = _sql(mock_store.execute)
        assert "INSERT INTO hostname_resolve_history" in sql
        assert "ON CONFLICT (resolved_hostname) DO UPDATE" in sql
        assert "first_seen_at =" not in sql.split("DO UPDATE")[1]

    async def test_fetch_resolved(self, mock_store):
        mock_store.fetchval.return_value = "b"
        assert await queries.fetch_resolved(mock_store, "a") == "b"
        assert mock_store.fetchval.await_args.args[1] == "a"

    async def test_fetch_resolved_miss(self, mock_store):
        mock_store.fetchval.return_value = None
        assert await queries.fetch_resolved(mock_store, "a") is None

    async def test_fetch_all_resolves(self, mock_store):
        mock_store.fetch.return_value = [
            {"hostname": "a", "resolved_hostname": "b", "resolved_at": 1},
            {"hostname": "", "resolved_hostname": "b", "resolved_at": 1},
        ]
        assert await queries.fetch_all_resolves(mock_store) == [ResolveEntry("a", "b", 1)]

    async def test_fetch_cyclic_pairs(self, mock_store):
        mock_store.fetch.return_value = [
            {
                "latest_hostname": "b",
                "latest_resolved_hostname": "a",
                "latest_resolved_at": 2,
                "early_hostname": "a",
                "early_resolved_hostname": "b",
                "early_resolved_at": 1,
            }
        ]
        pairs = await queries.fetch_cyclic_pairs(mock_store)
        assert pairs == [CyclicPair(ResolveEntry("b", "a", 2), ResolveEntry("a", "b", 1))]
        sql = _sql(mock_store.fetch)
        assert "latest.hostname < early.hostname" in sql
        assert "latest.hostname <> latest.resolved_hostname" in sql

    async def test_delete_resolve(self, mock_store):
        mock_store.fetchval.return_value = 1
        assert await queries.delete_resolve(mock_store, "a") is True
        assert mock_store.fetchval.await_args.kwargs["timeout"] == 30.0

    async def test_delete_resolve_absent(self, mock_store):
        mock_store.fetchval.return_value = 0
        assert await queries.delete_resolve(mock_store, "a") is False

    async def test_delete_resolves_older_than(self, mock_store):
        mock_store.fetchval.return_value = 4
        assert await queries.delete_resolves_older_than(mock_store, 120) == 4
        sql = _sql(mock_store.fetchval)
        assert "DELETE FROM hostname_resolve" in sql
        assert "resolved_at <" in sql
        assert "$1::bigint * 60000000" in sql
        assert mock_store.fetchval.await_args.args[1] == 120
        assert mock_store.fetchval.await_args.kwargs["timeout"] == 120.0

    async def test_delete_all_resolves(self, mock_store):
        mock_store.fetchval.return_value = 7
        assert await queries.delete_all_resolves(mock_store) == 7
        assert "WHERE" not in _sql(mock_store.fetchval)


class TestReverseQueries:
    async def test_upsert_unresolve(self, mock_store):
        await queries.upsert_unresolve(mock_store, "a", "10.0.0.1", 443)
        sql = _sql(mock_store.execute)
        assert "INSERT INTO hostname_unresolve " in sql
        assert "last_registered_at = EXCLUDED.last_registered_at" in sql
        assert mock_store.execute.await_args.args[1:] == ("a", "10.0.0.1", 443)

    async def test_replace_unresolve_history(self, mock_store):
        await queries.replace_unresolve_history(mock_store, "a", "x")
        assert "ON CONFLICT (hostname, unresolved_hostname)" in _sql(mock_store.execute)

    async def test_fetch_unresolved(self, mock_store):
        mock_store.fetchval.return_value = "x"
        assert await queries.fetch_unresolved(mock_store, "a") == "x"

    async def test_delete_unresolve(self, mock_store):
        mock_store.fetchval.return_value = 1
        assert await queries.delete_unresolve(mock_store, "a") is True

    async def test_delete_unresolves_older_than(self, mock_store):
        mock_store.fetchval.return_value = 2
        assert await queries.delete_unresolves_older_than(mock_store, 60) == 2
        assert "last_registered_at <" in _sql(mock_store.fetchval)

    async def test_fetch_missing_keys(self, mock_store):
        mock_store.fetch.return_value = [
            {
                "hostname": "backend-2",
                "unresolved_hostname": "10.0.0.2",
                "port": 5433,
                "last_registered_at": 1,
            },
            {
                "hostname": "backend-3",
                "unresolved_hostname": "10.0.0.3",
                "port": 0,
                "last_registered_at": 1,
            },
        ]
        assert await queries.fetch_missing_keys(mock_store) == {InstanceKey("10.0.0.2", 5433)}
        assert "NOT EXISTS" in _sql(mock_store.fetch)
