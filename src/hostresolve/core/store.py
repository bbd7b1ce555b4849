"""
Database facade over the connection pool.

``Store`` owns a private [Pool][hostresolve.core.pool.Pool] and exposes the
generic query methods (``fetch``, ``fetchrow``, ``fetchval``, ``execute``)
with per-category default timeouts. It holds no domain SQL:
the resolution queries live in [hostresolve.resolve.queries][] and take a
``Store`` as their first argument.

Examples:
    ```python
    store = Store.from_yaml("config/store.yaml")

    async with store:
        count = await store.fetchval("SELECT count(*) FROM hostname_resolve")
    ```
"""

from __future__ import annotations

from typing import Any, Literal

import asyncpg  # noqa: TC002
from pydantic import BaseModel, Field, field_validator

from .pool import Pool, PoolConfig
from .yaml import load_yaml


TIMEOUT_FLOOR = 0.1

TimeoutCategory = Literal["query", "write", "sweep"]


class StoreTimeoutsConfig(BaseModel):
    """Client-side timeouts for store operations (in seconds).

    ``None`` means no limit. ``query`` applies to keyed reads and snapshots,
    ``write`` to single-row upserts and deletes, ``sweep`` to predicate
    deletes that may touch many rows.
    """

    query: float | None = Field(default=30.0, description="Keyed reads and snapshots")
    write: float | None = Field(default=30.0, description="Single-row upserts and deletes")
    sweep: float | None = Field(default=120.0, description="Predicate deletes")

    @field_validator("query", "write", "sweep", mode="after")
    @classmethod
    def check_floor(cls, v: float | None) -> float | None:
        if v is not None and v < TIMEOUT_FLOOR:
            raise ValueError(f"timeout must be None or at least {TIMEOUT_FLOOR} seconds")
        return v


class StoreConfig(BaseModel):
    """Everything the facade itself is configured with (the pool is separate)."""

    timeouts: StoreTimeoutsConfig = Field(default_factory=StoreTimeoutsConfig)


class Store:
    """Generic database facade with default timeouts.

    Uses composition with a private ``Pool`` and manages its lifecycle as
    an async context manager.
    """

    def __init__(self, pool: Pool | None = None, config: StoreConfig | None = None) -> None:
        self._pool = pool or Pool()
        self._config = config or StoreConfig()

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def pool_config(self) -> PoolConfig:
        return self._pool.config

    @classmethod
    def from_yaml(cls, config_path: str) -> Store:
        """Create a Store from a YAML file with a ``pool`` key and optional ``timeouts``."""
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Store:
        """Create a Store from a configuration dictionary.

        The ``pool`` key builds the Pool; every other key is a
        [StoreConfig][hostresolve.core.store.StoreConfig] field.
        """
        rest = dict(config_dict)
        pool_dict = rest.pop("pool", None)
        return cls(
            pool=Pool.from_dict(pool_dict) if pool_dict is not None else None,
            config=StoreConfig(**rest) if rest else None,
        )

    def _timeout(self, category: TimeoutCategory, explicit: float | None) -> float | None:
        if explicit is not None:
            return explicit
        return getattr(self._config.timeouts, category)

    async def fetch(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> list[asyncpg.Record]:
        """All rows of ``query``; defaults to the ``query`` timeout."""
        return await self._pool.fetch(query, *args, timeout=self._timeout("query", timeout))

    async def fetchrow(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> asyncpg.Record | None:
        return await self._pool.fetchrow(query, *args, timeout=self._timeout("query", timeout))

    async def fetchval(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> Any:
        return await self._pool.fetchval(query, *args, timeout=self._timeout("query", timeout))

    async def execute(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> str:
        """Run a statement and return its status tag; defaults to the ``write`` timeout."""
        return await self._pool.execute(query, *args, timeout=self._timeout("write", timeout))

    async def __aenter__(self) -> Store:
        await self._pool.connect()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self._pool.close()

    def __repr__(self) -> str:
        return f"Store(pool={self._pool!r})"
