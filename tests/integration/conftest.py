"""Integration test fixtures providing ephemeral PostgreSQL via testcontainers.

The PostgresContainer is session-scoped to avoid the Docker startup per test.
The schema from ``deployments/postgres/init`` is re-created for every test
(function-scoped ``store`` fixture) so each test starts from empty tables.
Without a reachable Docker daemon the whole directory is skipped.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path

import asyncpg
import pytest
from docker.errors import DockerException
from pydantic import SecretStr
from testcontainers.postgres import PostgresContainer

from hostresolve.core.pool import DatabaseConfig, Pool, PoolConfig, PoolLimitsConfig
from hostresolve.core.store import Store
from hostresolve.resolve import PostgresBackend, ResolveCache, ResolveCacheConfig
from hostresolve.resolve.backend import MICROSECONDS_PER_MINUTE


SCHEMA_DIR = Path(__file__).parent.parent.parent / "deployments/postgres/init"

AGEABLE_COLUMNS = {
    "hostname_resolve": "resolved_at",
    "hostname_unresolve": "last_registered_at",
}

AgeRow = Callable[[str, str, float], Awaitable[None]]


# ---------------------------------------------------------------------------
# Session-scoped container
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Spawn an ephemeral PostgreSQL 16 container for the test session."""
    try:
        container = PostgresContainer("postgres:16-alpine")
        container.start()
    except DockerException as e:
        pytest.skip(f"Docker is not available: {e}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def pg_dsn(pg_container: PostgresContainer) -> dict[str, str | int]:
    """Extract connection parameters from the running container."""
    return {
        "host": pg_container.get_container_host_ip(),
        "port": int(pg_container.get_exposed_port(5432)),
        "database": pg_container.dbname,
        "user": pg_container.username,
        "password": pg_container.password,
    }


# ---------------------------------------------------------------------------
# Function-scoped Store with fresh schema
# ---------------------------------------------------------------------------


@pytest.fixture
async def store(pg_dsn: dict[str, str | int]):
    """Provide a connected Store over freshly created resolution tables."""
    # Schema setup goes through raw asyncpg, bypassing Pool
    conn = await asyncpg.connect(**pg_dsn)
    try:
        await conn.execute("DROP SCHEMA public CASCADE")
        await conn.execute("CREATE SCHEMA public")
        for sql_file in sorted(SCHEMA_DIR.glob("*.sql")):
            await conn.execute(sql_file.read_text())
    finally:
        await conn.close()

    config = PoolConfig(
        database=DatabaseConfig(
            host=str(pg_dsn["host"]),
            port=int(pg_dsn["port"]),
            database=str(pg_dsn["database"]),
            user=str(pg_dsn["user"]),
            password=SecretStr(str(pg_dsn["password"])),
        ),
        limits=PoolLimitsConfig(min_size=1, max_size=4),
    )
    async with Store(pool=Pool(config=config)) as connected:
        yield connected


@pytest.fixture
def backend(store: Store) -> PostgresBackend:
    return PostgresBackend(store)


@pytest.fixture
def pg_cache(store: Store) -> ResolveCache:
    return ResolveCache.from_store(store, ResolveCacheConfig(expiry_minutes=10))


@pytest.fixture
def age_row(store: Store) -> AgeRow:
    """Move a row's timestamp ``minutes`` into the past.

    ``NOW()`` cannot be faked, so expiry is exercised by ageing rows instead.
    """

    async def age(table: str, hostname: str, minutes: float) -> None:
        column = AGEABLE_COLUMNS[table]
        await store.execute(
            f"UPDATE {table} SET {column} = {column} - $2::bigint WHERE hostname = $1",
            hostname,
            round(minutes * MICROSECONDS_PER_MINUTE),
        )

    return age
