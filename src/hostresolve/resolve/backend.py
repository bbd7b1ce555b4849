"""Storage contract for the resolution cache.

[ResolveBackend][hostresolve.resolve.backend.ResolveBackend] lists every
primitive the forward and reverse stores need from a storage engine:
keyed upsert, conditional upsert (history coalescing), replace, keyed and
snapshot selects, predicate deletes, and the two self-join reads (mutual
cycles and missing instances). Engines assign every timestamp themselves
from their own clock so that concurrent callers never disagree about
"now". Timestamps are integer Unix microseconds.

Implementations:
    [PostgresBackend][hostresolve.resolve.postgres.PostgresBackend]:
        Production engine over [Store][hostresolve.core.store.Store].
    [MemoryBackend][hostresolve.resolve.memory.MemoryBackend]:
        Dict-backed engine with an injectable clock.

Backends do not serialize writes. Callers route every mutating method
through a [SerializedWriter][hostresolve.core.writer.SerializedWriter].
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, NamedTuple


if TYPE_CHECKING:
    from hostresolve.models import InstanceKey, ResolveEntry


MICROSECONDS_PER_SECOND = 1_000_000
MICROSECONDS_PER_MINUTE = 60 * MICROSECONDS_PER_SECOND


def to_micros(seconds: float) -> int:
    """Convert a Unix time in (fractional) seconds to integer microseconds."""
    return round(seconds * MICROSECONDS_PER_SECOND)


class CyclicPair(NamedTuple):
    """Two forward entries that resolve to each other.

    ``latest`` is the side that survives cycle repair, ``early`` the side
    that is deleted.
    """

    latest: ResolveEntry
    early: ResolveEntry


def supersedes(latest: ResolveEntry, early: ResolveEntry) -> bool:
    """Whether ``latest`` wins over ``early`` in a mutual cycle.

    The newer ``resolved_at`` wins. On equal timestamps the lexicographically
    smaller hostname wins, so exactly one side of any cycle qualifies as
    ``early``.
    """
    if latest.resolved_at != early.resolved_at:
        return latest.resolved_at > early.resolved_at
    return latest.hostname < early.hostname


def find_cyclic_pairs(entries: list[ResolveEntry]) -> list[CyclicPair]:
    """Pair up forward entries forming a mutual 2-cycle.

    Self-maps never take part. Each cycle yields exactly one pair, ordered
    by [supersedes()][hostresolve.resolve.backend.supersedes].
    """
    by_hostname = {entry.hostname: entry for entry in entries}
    pairs: list[CyclicPair] = []
    for latest in entries:
        if latest.is_identity:
            continue
        early = by_hostname.get(latest.resolved_hostname)
        if early is None or early.resolved_hostname != latest.hostname:
            continue
        if supersedes(latest, early):
            pairs.append(CyclicPair(latest=latest, early=early))
    return pairs


class ResolveBackend(ABC):
    """Storage primitives backing the forward and reverse stores."""

    # -------------------------------------------------------------------------
    # Forward (hostname_resolve)
    # -------------------------------------------------------------------------

    @abstractmethod
    async def upsert_resolve(self, hostname: str, resolved_hostname: str) -> None:
        """Insert or update the forward entry, stamping ``resolved_at`` with now."""

    @abstractmethod
    async def upsert_resolve_history(self, hostname: str, resolved_hostname: str) -> None:
        """Record a non-identity resolution keyed by ``resolved_hostname``.

        An existing record for the same ``resolved_hostname`` takes the new
        ``hostname`` and a fresh ``resolved_at``; ``first_seen_at`` is kept.
        """

    @abstractmethod
    async def fetch_resolved(self, hostname: str) -> str | None:
        """Return the resolved hostname, or None when no entry exists."""

    @abstractmethod
    async def fetch_all_resolves(self) -> list[ResolveEntry]:
        """Return a snapshot of every forward entry, in no particular order."""

    @abstractmethod
    async def fetch_cyclic_pairs(self) -> list[CyclicPair]:
        """Return every mutual 2-cycle among live forward entries."""

    @abstractmethod
    async def delete_resolve(self, hostname: str) -> bool:
        """Delete one forward entry. Returns whether a row was removed."""

    @abstractmethod
    async def delete_resolves_older_than(self, minutes: int) -> int:
        """Delete forward entries whose ``resolved_at`` is older than ``minutes``."""

    @abstractmethod
    async def delete_all_resolves(self) -> int:
        """Delete every forward entry. History is untouched."""

    # -------------------------------------------------------------------------
    # Reverse (hostname_unresolve)
    # -------------------------------------------------------------------------

    @abstractmethod
    async def upsert_unresolve(self, hostname: str, unresolved_hostname: str, port: int) -> None:
        """Insert or update the reverse entry, always refreshing ``last_registered_at``."""

    @abstractmethod
    async def replace_unresolve_history(self, hostname: str, unresolved_hostname: str) -> None:
        """Replace the history row for ``(hostname, unresolved_hostname)``."""

    @abstractmethod
    async def fetch_unresolved(self, hostname: str) -> str | None:
        """Return the dial address, or None when no entry exists."""

    @abstractmethod
    async def delete_unresolve(self, hostname: str) -> bool:
        """Delete one reverse entry. Returns whether a row was removed."""

    @abstractmethod
    async def delete_unresolves_older_than(self, minutes: int) -> int:
        """Delete reverse entries whose ``last_registered_at`` is older than ``minutes``."""

    @abstractmethod
    async def fetch_missing_keys(self) -> set[InstanceKey]:
        """Return dial keys of reverse entries no forward entry resolves to."""
