"""
Resolution cache facade.

[ResolveCache][hostresolve.resolve.cache.ResolveCache] is what discovery
code and the maintenance services talk to. It wires one
[SerializedWriter][hostresolve.core.writer.SerializedWriter] into both
stores so every mutation against the backend shares the same write slots,
and exposes the maintenance passes with the configured expiry window.

Examples:
    ```python
    store = Store.from_yaml("config/store.yaml")
    async with store:
        cache = ResolveCache.from_store(store, ResolveCacheConfig(expiry_minutes=30))
        await cache.write_resolved("web1.vip", "web1-backend-03")
        await cache.write_unresolved(InstanceKey("web1-backend-03", 5432), "10.0.4.17")
        await cache.run_cycle_repair()
    ```
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

from hostresolve.core.logger import Logger
from hostresolve.core.metrics import NullObserver, ResolveObserver
from hostresolve.core.writer import SerializedWriter, WriterConfig

from . import expiry, repair
from .entries import EntryStore
from .postgres import PostgresBackend
from .reverse import ReverseStore


if TYPE_CHECKING:
    from hostresolve.core.store import Store
    from hostresolve.models import InstanceKey, ResolveEntry

    from .backend import ResolveBackend
    from .expiry import SweepResult
    from .repair import RepairResult


class ResolveCacheConfig(BaseModel):
    """Behaviour of the resolution cache.

    Attributes:
        expiry_minutes: Reverse entries not re-registered within this many
            minutes are expired; forward entries get twice the window.
        cycle_repair_enabled: When ``False``,
            [run_cycle_repair()][hostresolve.resolve.cache.ResolveCache.run_cycle_repair]
            logs and returns an empty result.
        reject_pattern: Regular expression; resolved hostnames matching it
            are never stored.
        writer: Bounds of the shared serialized write path.
    """

    expiry_minutes: int = Field(default=60, ge=1, description="Reverse staleness window (minutes)")
    cycle_repair_enabled: bool = Field(default=True)
    reject_pattern: str | None = Field(default=None)
    writer: WriterConfig = Field(default_factory=WriterConfig)

    @field_validator("reject_pattern")
    @classmethod
    def validate_reject_pattern(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid reject_pattern: {e}") from e
        return v


class ResolveCache:
    """Forward and reverse resolution stores behind one shared write path.

    Args:
        backend: Storage engine (PostgreSQL or in-memory).
        config: Cache configuration. Defaults to ``ResolveCacheConfig()``.
        observer: Receives one notification per operation. Defaults to
            [NullObserver][hostresolve.core.metrics.NullObserver].
        sweep_timeout: Deadline for predicate deletes (expiry and flush).
    """

    def __init__(
        self,
        backend: ResolveBackend,
        config: ResolveCacheConfig | None = None,
        observer: ResolveObserver | None = None,
        *,
        sweep_timeout: float | None = None,
    ) -> None:
        self._backend = backend
        self._config = config or ResolveCacheConfig()
        self._observer: ResolveObserver = observer or NullObserver()
        self._writer = SerializedWriter(self._config.writer)
        self._entries = EntryStore(
            backend,
            self._writer,
            self._observer,
            reject_pattern=self._config.reject_pattern,
            sweep_timeout=sweep_timeout,
        )
        self._reverse = ReverseStore(
            backend, self._writer, self._observer, sweep_timeout=sweep_timeout
        )
        self._logger = Logger("resolve.cache")

    @classmethod
    def from_store(
        cls,
        store: Store,
        config: ResolveCacheConfig | None = None,
        observer: ResolveObserver | None = None,
    ) -> ResolveCache:
        """Build a PostgreSQL-backed cache using the store's sweep timeout."""
        return cls(
            PostgresBackend(store),
            config,
            observer,
            sweep_timeout=store.config.timeouts.sweep,
        )

    @property
    def config(self) -> ResolveCacheConfig:
        return self._config

    @property
    def backend(self) -> ResolveBackend:
        return self._backend

    @property
    def writer(self) -> SerializedWriter:
        return self._writer

    @property
    def entries(self) -> EntryStore:
        return self._entries

    @property
    def reverse(self) -> ReverseStore:
        return self._reverse

    # -- Forward -----------------------------------------------------------

    async def write_resolved(self, hostname: str, resolved_hostname: str) -> None:
        await self._entries.write_resolved(hostname, resolved_hostname)

    async def read_resolved(self, hostname: str) -> str | None:
        return await self._entries.read_resolved(hostname)

    async def read_all(self) -> list[ResolveEntry]:
        return await self._entries.read_all()

    async def clear_all(self) -> int:
        return await self._entries.clear_all()

    # -- Reverse -----------------------------------------------------------

    async def write_unresolved(self, instance_key: InstanceKey, unresolved_hostname: str) -> None:
        await self._reverse.write_unresolved(instance_key, unresolved_hostname)

    async def read_unresolved(self, hostname: str) -> str:
        return await self._reverse.read_unresolved(hostname)

    async def deregister(self, instance_key: InstanceKey) -> None:
        await self._reverse.deregister(instance_key)

    async def find_missing(self) -> set[InstanceKey]:
        return await self._reverse.find_missing()

    # -- Maintenance -------------------------------------------------------

    async def run_cycle_repair(self) -> RepairResult:
        """Delete the stale half of every mutual 2-cycle in the forward store."""
        if not self._config.cycle_repair_enabled:
            self._logger.info("cycle_repair_disabled")
            return repair.RepairResult()
        return await repair.run_cycle_repair(self._backend, self._entries)

    async def run_expiry_sweep(self) -> SweepResult:
        """Expire stale reverse entries, then forward entries (double window)."""
        return await expiry.run_expiry_sweep(
            self._entries, self._reverse, self._config.expiry_minutes
        )

    def __repr__(self) -> str:
        return (
            f"ResolveCache(backend={type(self._backend).__name__}, "
            f"expiry_minutes={self._config.expiry_minutes})"
        )
