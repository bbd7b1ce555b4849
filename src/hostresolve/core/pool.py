"""
Async PostgreSQL connection pool built on asyncpg.

[Pool][hostresolve.core.pool.Pool] owns the ``asyncpg.Pool`` behind the
[Store][hostresolve.core.store.Store]. It retries connection setup and
dropped connections with backoff, and every asyncpg failure leaving this
module is translated into the
[DatabaseError][hostresolve.core.exceptions.DatabaseError] hierarchy:

* ``InterfaceError`` / ``ConnectionDoesNotExistError`` are retried, then
  raised as [StoreUnavailableError][hostresolve.core.exceptions.StoreUnavailableError].
* Client-side timeouts, server-side ``statement_timeout`` cancellations and
  socket errors become ``StoreUnavailableError``.
* ``IntegrityConstraintViolationError`` becomes
  [ConstraintViolationError][hostresolve.core.exceptions.ConstraintViolationError].
* Any other ``PostgresError`` becomes
  [QueryError][hostresolve.core.exceptions.QueryError].

Examples:
    ```python
    pool = Pool.from_yaml("config/store.yaml")

    async with pool:
        rows = await pool.fetch("SELECT hostname FROM hostname_resolve")
    ```
"""

from __future__ import annotations

import asyncio
import os
from contextlib import AbstractAsyncContextManager
from typing import Any, Literal, Self, cast

import asyncpg
from pydantic import BaseModel, Field, SecretStr, model_validator

from .exceptions import (
    ConstraintViolationError,
    DatabaseError,
    QueryError,
    StoreUnavailableError,
)
from .logger import Logger
from .yaml import load_yaml


QueryOperation = Literal["fetch", "fetchrow", "fetchval", "execute"]


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class DatabaseConfig(BaseModel):
    """Where the cache tables live and who connects.

    The password is never read from files: it comes from the environment
    variable named by ``password_env`` (default ``DB_ADMIN_PASSWORD``)
    unless passed explicitly.
    """

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(default="hostresolve", min_length=1)
    user: str = Field(default="admin", min_length=1)
    password_env: str = Field(default="DB_ADMIN_PASSWORD", min_length=1)  # pragma: allowlist secret
    password: SecretStr

    @model_validator(mode="before")
    @classmethod
    def password_from_env(cls, data: Any) -> Any:
        if isinstance(data, dict) and "password" not in data:
            env_var = data.get("password_env", "DB_ADMIN_PASSWORD")  # pragma: allowlist secret
            value = os.getenv(env_var)
            if not value:
                raise ValueError(f"{env_var} environment variable not set")
            data = {**data, "password": SecretStr(value)}
        return data

    def connect_kwargs(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "password": self.password.get_secret_value(),
        }


class PoolLimitsConfig(BaseModel):
    """Pool size and connection recycling."""

    min_size: int = Field(default=1, ge=1, le=100)
    max_size: int = Field(default=10, ge=1, le=200)
    max_queries: int = Field(
        default=50_000, ge=100, description="Queries before a connection is recycled"
    )
    max_inactive_connection_lifetime: float = Field(
        default=300.0, ge=0.0, description="Seconds an idle connection is kept"
    )

    @model_validator(mode="after")
    def check_sizes(self) -> Self:
        if self.max_size < self.min_size:
            raise ValueError(f"max_size ({self.max_size}) must be >= min_size ({self.min_size})")
        return self


class PoolTimeoutsConfig(BaseModel):
    acquisition: float = Field(default=10.0, ge=0.1, description="Connection setup timeout (s)")


class PoolRetryConfig(BaseModel):
    """Backoff for connection setup and dropped connections."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    initial_delay: float = Field(default=1.0, ge=0.1)
    max_delay: float = Field(default=10.0, ge=0.1)
    exponential_backoff: bool = Field(default=True)

    @model_validator(mode="after")
    def check_delays(self) -> Self:
        if self.max_delay < self.initial_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be >= initial_delay ({self.initial_delay})"
            )
        return self

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the zero-based failed ``attempt``.

        ``initial_delay * 2^attempt`` when exponential, otherwise
        ``initial_delay * (attempt + 1)``; capped at ``max_delay``.
        """
        factor = 2**attempt if self.exponential_backoff else attempt + 1
        return float(min(self.initial_delay * factor, self.max_delay))


class ServerSettingsConfig(BaseModel):
    """Session settings sent with every pooled connection.

    ``statement_timeout`` (milliseconds) is a server-side backstop for the
    client-side timeouts applied by the Store.
    """

    application_name: str = Field(default="hostresolve")
    timezone: str = Field(default="UTC")
    statement_timeout: int = Field(default=60_000, ge=0, description="0 disables the limit")

    def as_server_settings(self) -> dict[str, str]:
        return {
            "application_name": self.application_name,
            "timezone": self.timezone,
            "statement_timeout": str(self.statement_timeout),
        }


class PoolConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=lambda: DatabaseConfig.model_validate({}))
    limits: PoolLimitsConfig = Field(default_factory=PoolLimitsConfig)
    timeouts: PoolTimeoutsConfig = Field(default_factory=PoolTimeoutsConfig)
    retry: PoolRetryConfig = Field(default_factory=PoolRetryConfig)
    server_settings: ServerSettingsConfig = Field(default_factory=ServerSettingsConfig)


def _translate_error(operation: str, error: Exception, timeout: float | None) -> DatabaseError:
    """Map a non-retryable query failure onto the exception tree."""
    if isinstance(error, TimeoutError):
        return StoreUnavailableError(f"{operation} timed out after {timeout}s")
    if isinstance(error, asyncpg.QueryCanceledError):
        # statement_timeout fired server-side
        return StoreUnavailableError(f"{operation} cancelled by server: {error}")
    if isinstance(error, asyncpg.IntegrityConstraintViolationError):
        return ConstraintViolationError(str(error))
    if isinstance(error, asyncpg.PostgresError):
        return QueryError(str(error))
    return StoreUnavailableError(f"{operation} failed: {error}")


# ---------------------------------------------------------------------------
# Pool
# ---------------------------------------------------------------------------


class Pool:
    """asyncpg pool with retries and error translation.

    Created disconnected; call [connect()][hostresolve.core.pool.Pool.connect]
    or use ``async with``. Resolution code never uses it directly: it goes
    through [Store][hostresolve.core.store.Store], which picks the timeout
    for each query category.
    """

    def __init__(self, config: PoolConfig | None = None) -> None:
        self._config = config or PoolConfig()
        self._pool: asyncpg.Pool[asyncpg.Record] | None = None
        self._lock = asyncio.Lock()
        self._logger = Logger("pool")

    @classmethod
    def from_yaml(cls, config_path: str) -> Pool:
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Pool:
        return cls(config=PoolConfig(**config_dict))

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Create the asyncpg pool, retrying with backoff. No-op when connected.

        Raises:
            StoreUnavailableError: Every attempt failed.
        """
        async with self._lock:
            if self._pool is not None:
                return

            db = self._config.database
            limits = self._config.limits
            attempts = self._config.retry.max_attempts
            self._logger.info(
                "connection_starting", host=db.host, port=db.port, database=db.database
            )

            for attempt in range(attempts):
                try:
                    self._pool = await asyncpg.create_pool(
                        **db.connect_kwargs(),
                        min_size=limits.min_size,
                        max_size=limits.max_size,
                        max_queries=limits.max_queries,
                        max_inactive_connection_lifetime=limits.max_inactive_connection_lifetime,
                        timeout=self._config.timeouts.acquisition,
                        server_settings=self._config.server_settings.as_server_settings(),
                    )
                except (asyncpg.PostgresError, OSError) as e:
                    if attempt + 1 == attempts:
                        self._logger.error("connection_failed", attempts=attempts, error=str(e))
                        raise StoreUnavailableError(
                            f"Failed to connect after {attempts} attempts: {e}"
                        ) from e
                    await self._backoff("connection_retry", attempt, e)
                else:
                    self._logger.info("connection_established")
                    return

    async def close(self) -> None:
        """Close the pool and release all connections. Idempotent."""
        async with self._lock:
            pool, self._pool = self._pool, None
            if pool is not None:
                await pool.close()
                self._logger.info("connection_closed")

    async def _backoff(self, event: str, attempt: int, error: Exception, **fields: Any) -> None:
        delay = self._config.retry.delay(attempt)
        self._logger.warning(event, attempt=attempt + 1, delay_s=delay, error=str(error), **fields)
        await asyncio.sleep(delay)

    def acquire(self) -> AbstractAsyncContextManager[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool.

        Raises:
            StoreUnavailableError: The pool has not been connected yet.
        """
        if self._pool is None:
            raise StoreUnavailableError("Pool not connected. Call connect() first.")
        return cast(
            "AbstractAsyncContextManager[asyncpg.Connection[asyncpg.Record]]",
            self._pool.acquire(),
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def _run(
        self,
        operation: QueryOperation,
        query: str,
        args: tuple[Any, ...],
        timeout: float | None,  # noqa: ASYNC109
        **kwargs: Any,
    ) -> Any:
        """Run one asyncpg call on a fresh connection per attempt.

        Only dropped connections are retried; any other failure is
        translated and raised at once.
        """
        attempts = self._config.retry.max_attempts

        for attempt in range(attempts):
            try:
                async with self.acquire() as conn:
                    return await getattr(conn, operation)(query, *args, timeout=timeout, **kwargs)
            except (asyncpg.InterfaceError, asyncpg.ConnectionDoesNotExistError) as e:
                if attempt + 1 == attempts:
                    self._logger.error(
                        "query_failed", operation=operation, attempts=attempts, error=str(e)
                    )
                    raise StoreUnavailableError(
                        f"{operation} failed after {attempts} attempts: {e}"
                    ) from e
                await self._backoff("query_retry", attempt, e, operation=operation)
            except (TimeoutError, asyncpg.PostgresError, OSError) as e:
                raise _translate_error(operation, e, timeout) from e

        raise AssertionError("unreachable")

    async def fetch(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> list[asyncpg.Record]:
        return cast("list[asyncpg.Record]", await self._run("fetch", query, args, timeout))

    async def fetchrow(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> asyncpg.Record | None:
        return cast("asyncpg.Record | None", await self._run("fetchrow", query, args, timeout))

    async def fetchval(
        self,
        query: str,
        *args: Any,
        column: int = 0,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> Any:
        return await self._run("fetchval", query, args, timeout, column=column)

    async def execute(self, query: str, *args: Any, timeout: float | None = None) -> str:  # noqa: ASYNC109
        """Run a statement and return its status tag."""
        return cast("str", await self._run("execute", query, args, timeout))

    async def __aenter__(self) -> Pool:
        await self.connect()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.close()

    def __repr__(self) -> str:
        db = self._config.database
        return f"Pool(host={db.host}, database={db.database}, connected={self.is_connected})"
