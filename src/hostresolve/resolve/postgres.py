"""PostgreSQL storage engine.

Adapts the functions in [hostresolve.resolve.queries][] to the
[ResolveBackend][hostresolve.resolve.backend.ResolveBackend] contract.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import queries
from .backend import CyclicPair, ResolveBackend


if TYPE_CHECKING:
    from hostresolve.core.store import Store
    from hostresolve.models import InstanceKey, ResolveEntry


class PostgresBackend(ResolveBackend):
    """Resolution storage in the four ``hostname_*`` PostgreSQL tables.

    The [Store][hostresolve.core.store.Store] must be connected (``async
    with store:``) before any method is awaited.
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    @property
    def store(self) -> Store:
        return self._store

    async def upsert_resolve(self, hostname: str, resolved_hostname: str) -> None:
        await queries.upsert_resolve(self._store, hostname, resolved_hostname)

    async def upsert_resolve_history(self, hostname: str, resolved_hostname: str) -> None:
        await queries.upsert_resolve_history(self._store, hostname, resolved_hostname)

    async def fetch_resolved(self, hostname: str) -> str | None:
        return await queries.fetch_resolved(self._store, hostname)

    async def fetch_all_resolves(self) -> list[ResolveEntry]:
        return await queries.fetch_all_resolves(self._store)

    async def fetch_cyclic_pairs(self) -> list[CyclicPair]:
        return await queries.fetch_cyclic_pairs(self._store)

    async def delete_resolve(self, hostname: str) -> bool:
        return await queries.delete_resolve(self._store, hostname)

    async def delete_resolves_older_than(self, minutes: int) -> int:
        return await queries.delete_resolves_older_than(self._store, minutes)

    async def delete_all_resolves(self) -> int:
        return await queries.delete_all_resolves(self._store)

    async def upsert_unresolve(self, hostname: str, unresolved_hostname: str, port: int) -> None:
        await queries.upsert_unresolve(self._store, hostname, unresolved_hostname, port)

    async def replace_unresolve_history(self, hostname: str, unresolved_hostname: str) -> None:
        await queries.replace_unresolve_history(self._store, hostname, unresolved_hostname)

    async def fetch_unresolved(self, hostname: str) -> str | None:
        return await queries.fetch_unresolved(self._store, hostname)

    async def delete_unresolve(self, hostname: str) -> bool:
        return await queries.delete_unresolve(self._store, hostname)

    async def delete_unresolves_older_than(self, minutes: int) -> int:
        return await queries.delete_unresolves_older_than(self._store, minutes)

    async def fetch_missing_keys(self) -> set[InstanceKey]:
        return await queries.fetch_missing_keys(self._store)
