"""SQL for the resolution tables.

All resolution SQL is centralized here. Each function accepts a
[Store][hostresolve.core.store.Store] and returns typed results; the
[PostgresBackend][hostresolve.resolve.postgres.PostgresBackend] is a thin
adapter over these functions.

Timestamps are Unix microseconds computed by the server from ``NOW()``,
never passed in by callers, so discovery workers on different hosts cannot
skew them. ``NOW()`` is fixed for a statement, so both timestamps written by
one statement are equal.

The schema lives in ``deployments/postgres/init/``.

Warning:
    Reads use ``timeouts.query``, single-row writes ``timeouts.write`` and
    predicate deletes ``timeouts.sweep`` from
    [StoreTimeoutsConfig][hostresolve.core.store.StoreTimeoutsConfig].
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hostresolve.models import InstanceKey, ResolveEntry, UnresolveEntry

from .backend import MICROSECONDS_PER_MINUTE, CyclicPair


if TYPE_CHECKING:
    from hostresolve.core.store import Store

logger = logging.getLogger(__name__)

_NOW = "(EXTRACT(EPOCH FROM NOW()) * 1000000)::BIGINT"


# =============================================================================
# Forward (hostname_resolve)
# =============================================================================


async def upsert_resolve(store: Store, hostname: str, resolved_hostname: str) -> None:
    """Insert or refresh the forward entry for ``hostname``."""
    await store.execute(
        f"""
        INSERT INTO hostname_resolve (hostname, resolved_hostname, resolved_at)
        VALUES ($1, $2, {_NOW})
        ON CONFLICT (hostname) DO UPDATE
        SET resolved_hostname = EXCLUDED.resolved_hostname,
            resolved_at = EXCLUDED.resolved_at
        """,
        hostname,
        resolved_hostname,
    )


async def upsert_resolve_history(store: Store, hostname: str, resolved_hostname: str) -> None:
    """Record or coalesce the history row keyed by ``resolved_hostname``.

    The stored ``hostname`` moves forward to the latest writer unless the
    incoming hostname is the resolved name itself; ``first_seen_at`` is
    only set on insert.
    """
    await store.execute(
        f"""
        INSERT INTO hostname_resolve_history
            (hostname, resolved_hostname, first_seen_at, resolved_at)
        VALUES ($1, $2, {_NOW}, {_NOW})
        ON CONFLICT (resolved_hostname) DO UPDATE
        SET hostname = CASE
                WHEN EXCLUDED.hostname <> hostname_resolve_history.resolved_hostname
                THEN EXCLUDED.hostname
                ELSE hostname_resolve_history.hostname
            END,
            resolved_at = EXCLUDED.resolved_at
        """,
        hostname,
        resolved_hostname,
    )


async def fetch_resolved(store: Store, hostname: str) -> str | None:
    """Return the resolved hostname for ``hostname``, or None."""
    value: str | None = await store.fetchval(
        """
        SELECT resolved_hostname
        FROM hostname_resolve
        WHERE hostname = $1
        """,
        hostname,
    )
    return value


async def fetch_all_resolves(store: Store) -> list[ResolveEntry]:
    """Return every forward entry.

    Rows that fail [ResolveEntry][hostresolve.models.ResolveEntry]
    validation are skipped with a warning.
    """
    rows = await store.fetch(
        """
        SELECT hostname, resolved_hostname, resolved_at
        FROM hostname_resolve
        """
    )
    entries: list[ResolveEntry] = []
    for row in rows:
        try:
            entries.append(ResolveEntry.from_row(row))
        except (ValueError, TypeError) as e:
            logger.warning("Skipping invalid resolve row %s: %s", row["hostname"], e)
    return entries


async def fetch_cyclic_pairs(store: Store) -> list[CyclicPair]:
    """Find forward entries that resolve to each other.

    ``latest`` is the newer side; on equal timestamps the lexicographically
    smaller hostname is treated as newer so exactly one side qualifies.
    """
    rows = await store.fetch(
        """
        SELECT
            latest.hostname AS latest_hostname,
            latest.resolved_hostname AS latest_resolved_hostname,
            latest.resolved_at AS latest_resolved_at,
            early.hostname AS early_hostname,
            early.resolved_hostname AS early_resolved_hostname,
            early.resolved_at AS early_resolved_at
        FROM hostname_resolve AS latest
        JOIN hostname_resolve AS early
          ON latest.resolved_hostname = early.hostname
         AND latest.hostname = early.resolved_hostname
        WHERE latest.hostname <> latest.resolved_hostname
          AND (
              latest.resolved_at > early.resolved_at
              OR (latest.resolved_at = early.resolved_at AND latest.hostname < early.hostname)
          )
        """
    )
    return [
        CyclicPair(
            latest=ResolveEntry(
                row["latest_hostname"], row["latest_resolved_hostname"], row["latest_resolved_at"]
            ),
            early=ResolveEntry(
                row["early_hostname"], row["early_resolved_hostname"], row["early_resolved_at"]
            ),
        )
        for row in rows
    ]


async def delete_resolve(store: Store, hostname: str) -> bool:
    """Delete the forward entry for ``hostname``. Returns whether it existed."""
    deleted: int = await store.fetchval(
        """
        WITH deleted AS (
            DELETE FROM hostname_resolve
            WHERE hostname = $1
            RETURNING 1
        )
        SELECT count(*)::int FROM deleted
        """,
        hostname,
        timeout=store.config.timeouts.write,
    )
    return deleted > 0


async def delete_resolves_older_than(store: Store, minutes: int) -> int:
    """Delete forward entries not refreshed in the last ``minutes``. Returns the count."""
    count: int = await store.fetchval(
        f"""
        WITH deleted AS (
            DELETE FROM hostname_resolve
            WHERE resolved_at < {_NOW} - $1::bigint * {MICROSECONDS_PER_MINUTE}
            RETURNING 1
        )
        SELECT count(*)::int FROM deleted
        """,
        minutes,
        timeout=store.config.timeouts.sweep,
    )
    return count


async def delete_all_resolves(store: Store) -> int:
    """Delete every forward entry. Returns the count."""
    count: int = await store.fetchval(
        """
        WITH deleted AS (
            DELETE FROM hostname_resolve
            RETURNING 1
        )
        SELECT count(*)::int FROM deleted
        """,
        timeout=store.config.timeouts.sweep,
    )
    return count


# =============================================================================
# Reverse (hostname_unresolve)
# =============================================================================


async def upsert_unresolve(store: Store, hostname: str, unresolved_hostname: str, port: int) -> None:
    """Insert or refresh the reverse entry; ``last_registered_at`` always moves."""
    await store.execute(
        f"""
        INSERT INTO hostname_unresolve (hostname, unresolved_hostname, port, last_registered_at)
        VALUES ($1, $2, $3, {_NOW})
        ON CONFLICT (hostname) DO UPDATE
        SET unresolved_hostname = EXCLUDED.unresolved_hostname,
            port = EXCLUDED.port,
            last_registered_at = EXCLUDED.last_registered_at
        """,
        hostname,
        unresolved_hostname,
        port,
    )


async def replace_unresolve_history(store: Store, hostname: str, unresolved_hostname: str) -> None:
    """Replace the history row for ``(hostname, unresolved_hostname)``."""
    await store.execute(
        f"""
        INSERT INTO hostname_unresolve_history (hostname, unresolved_hostname, last_registered_at)
        VALUES ($1, $2, {_NOW})
        ON CONFLICT (hostname, unresolved_hostname) DO UPDATE
        SET last_registered_at = EXCLUDED.last_registered_at
        """,
        hostname,
        unresolved_hostname,
    )


async def fetch_unresolved(store: Store, hostname: str) -> str | None:
    """Return the dial address registered for ``hostname``, or None."""
    value: str | None = await store.fetchval(
        """
        SELECT unresolved_hostname
        FROM hostname_unresolve
        WHERE hostname = $1
        """,
        hostname,
    )
    return value


async def delete_unresolve(store: Store, hostname: str) -> bool:
    """Delete the reverse entry for ``hostname``. Returns whether it existed."""
    deleted: int = await store.fetchval(
        """
        WITH deleted AS (
            DELETE FROM hostname_unresolve
            WHERE hostname = $1
            RETURNING 1
        )
        SELECT count(*)::int FROM deleted
        """,
        hostname,
        timeout=store.config.timeouts.write,
    )
    return deleted > 0


async def delete_unresolves_older_than(store: Store, minutes: int) -> int:
    """Delete reverse entries not registered in the last ``minutes``. Returns the count."""
    count: int = await store.fetchval(
        f"""
        WITH deleted AS (
            DELETE FROM hostname_unresolve
            WHERE last_registered_at < {_NOW} - $1::bigint * {MICROSECONDS_PER_MINUTE}
            RETURNING 1
        )
        SELECT count(*)::int FROM deleted
        """,
        minutes,
        timeout=store.config.timeouts.sweep,
    )
    return count


async def fetch_missing_keys(store: Store) -> set[InstanceKey]:
    """Return dial keys of reverse entries that no forward entry resolves to.

    Rows that fail
    [UnresolveEntry][hostresolve.models.UnresolveEntry] validation are
    skipped with a warning.
    """
    rows = await store.fetch(
        """
        SELECT u.hostname, u.unresolved_hostname, u.port, u.last_registered_at
        FROM hostname_unresolve AS u
        WHERE NOT EXISTS (
            SELECT 1 FROM hostname_resolve AS r
            WHERE r.resolved_hostname = u.hostname
        )
        """
    )
    keys: set[InstanceKey] = set()
    for row in rows:
        try:
            keys.add(UnresolveEntry.from_row(row).dial_key)
        except (ValueError, TypeError) as e:
            logger.warning("Skipping invalid unresolve row %s: %s", row["hostname"], e)
    return keys
