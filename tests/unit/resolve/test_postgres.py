"""Unit tests for resolve.postgres module."""

from unittest.mock import AsyncMock, patch

import pytest

from hostresolve.resolve import PostgresBackend


class TestPostgresBackend:
    def test_store_property(self, mock_store):
        assert PostgresBackend(mock_store).store is mock_store

    @pytest.mark.parametrize(
        ("method", "args"),
        [
            ("upsert_resolve", ("a", "b")),
            ("upsert_resolve_history", ("a", "b")),
            ("fetch_resolved", ("a",)),
            ("fetch_all_resolves", ()),
            ("fetch_cyclic_pairs", ()),
            ("delete_resolve", ("a",)),
            ("delete_resolves_older_than", (10,)),
            ("delete_all_resolves", ()),
            ("upsert_unresolve", ("a", "x", 80)),
            ("replace_unresolve_history", ("a", "x")),
            ("fetch_unresolved", ("a",)),
            ("delete_unresolve", ("a",)),
            ("delete_unresolves_older_than", (10,)),
            ("fetch_missing_keys", ()),
        ],
    )
    async def test_delegates_to_queries(self, mock_store, method, args):
        backend = PostgresBackend(mock_store)
        with patch(f"hostresolve.resolve.queries.{method}", new=AsyncMock(return_value="r")) as q:
            assert await getattr(backend, method)(*args) == "r"
        q.assert_awaited_once_with(mock_store, *args)
