"""In-memory storage engine.

Implements [ResolveBackend][hostresolve.resolve.backend.ResolveBackend] over
plain dictionaries. Intended for tests and for embedding the cache in a
single process without PostgreSQL. Timestamps come from an injectable
clock (``time.time`` by default, in seconds) so expiry can be exercised
without sleeping. Stored timestamps keep the clock's sub-second part as
integer microseconds.

Each method completes without awaiting, so under asyncio every call is
atomic with respect to other coroutines.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from hostresolve.models import (
    InstanceKey,
    ResolveEntry,
    ResolveHistoryRecord,
    UnresolveEntry,
    UnresolveHistoryRecord,
)

from .backend import (
    MICROSECONDS_PER_MINUTE,
    CyclicPair,
    ResolveBackend,
    find_cyclic_pairs,
    to_micros,
)


class MemoryBackend(ResolveBackend):
    """Dict-backed resolution storage.

    Attributes:
        resolves: Forward entries keyed by ``hostname``.
        resolve_history: Forward history keyed by ``resolved_hostname``.
        unresolves: Reverse entries keyed by ``hostname``.
        unresolve_history: Reverse history keyed by
            ``(hostname, unresolved_hostname)``.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self.resolves: dict[str, ResolveEntry] = {}
        self.resolve_history: dict[str, ResolveHistoryRecord] = {}
        self.unresolves: dict[str, UnresolveEntry] = {}
        self.unresolve_history: dict[tuple[str, str], UnresolveHistoryRecord] = {}

    def _now(self) -> int:
        return to_micros(self._clock())

    def _cutoff(self, minutes: int) -> int:
        return self._now() - minutes * MICROSECONDS_PER_MINUTE

    # -------------------------------------------------------------------------
    # Forward
    # -------------------------------------------------------------------------

    async def upsert_resolve(self, hostname: str, resolved_hostname: str) -> None:
        self.resolves[hostname] = ResolveEntry(hostname, resolved_hostname, self._now())

    async def upsert_resolve_history(self, hostname: str, resolved_hostname: str) -> None:
        now = self._now()
        previous = self.resolve_history.get(resolved_hostname)
        first_seen_at = previous.first_seen_at if previous else now
        self.resolve_history[resolved_hostname] = ResolveHistoryRecord(
            hostname=hostname,
            resolved_hostname=resolved_hostname,
            first_seen_at=first_seen_at,
            resolved_at=now,
        )

    async def fetch_resolved(self, hostname: str) -> str | None:
        entry = self.resolves.get(hostname)
        return entry.resolved_hostname if entry else None

    async def fetch_all_resolves(self) -> list[ResolveEntry]:
        return list(self.resolves.values())

    async def fetch_cyclic_pairs(self) -> list[CyclicPair]:
        return find_cyclic_pairs(list(self.resolves.values()))

    async def delete_resolve(self, hostname: str) -> bool:
        return self.resolves.pop(hostname, None) is not None

    async def delete_resolves_older_than(self, minutes: int) -> int:
        cutoff = self._cutoff(minutes)
        stale = [h for h, e in self.resolves.items() if e.resolved_at < cutoff]
        for hostname in stale:
            del self.resolves[hostname]
        return len(stale)

    async def delete_all_resolves(self) -> int:
        count = len(self.resolves)
        self.resolves.clear()
        return count

    # -------------------------------------------------------------------------
    # Reverse
    # -------------------------------------------------------------------------

    async def upsert_unresolve(self, hostname: str, unresolved_hostname: str, port: int) -> None:
        self.unresolves[hostname] = UnresolveEntry(
            hostname=hostname,
            unresolved_hostname=unresolved_hostname,
            port=port,
            last_registered_at=self._now(),
        )

    async def replace_unresolve_history(self, hostname: str, unresolved_hostname: str) -> None:
        self.unresolve_history[(hostname, unresolved_hostname)] = UnresolveHistoryRecord(
            hostname=hostname,
            unresolved_hostname=unresolved_hostname,
            last_registered_at=self._now(),
        )

    async def fetch_unresolved(self, hostname: str) -> str | None:
        entry = self.unresolves.get(hostname)
        return entry.unresolved_hostname if entry else None

    async def delete_unresolve(self, hostname: str) -> bool:
        return self.unresolves.pop(hostname, None) is not None

    async def delete_unresolves_older_than(self, minutes: int) -> int:
        cutoff = self._cutoff(minutes)
        stale = [h for h, e in self.unresolves.items() if e.last_registered_at < cutoff]
        for hostname in stale:
            del self.unresolves[hostname]
        return len(stale)

    async def fetch_missing_keys(self) -> set[InstanceKey]:
        resolved_targets = {e.resolved_hostname for e in self.resolves.values()}
        return {
            entry.dial_key
            for entry in self.unresolves.values()
            if entry.hostname not in resolved_targets
        }
