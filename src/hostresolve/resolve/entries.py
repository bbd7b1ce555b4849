"""Forward cache: hostname to resolved hostname.

[EntryStore][hostresolve.resolve.entries.EntryStore] keeps one
[ResolveEntry][hostresolve.models.ResolveEntry] per observed hostname plus
an audit trail of non-identity resolutions. Mutations go through the shared
[SerializedWriter][hostresolve.core.writer.SerializedWriter]; reads go
straight to the backend and treat a miss as "use the raw hostname".
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from hostresolve.core.exceptions import ConstraintViolationError, DatabaseError
from hostresolve.core.logger import Logger
from hostresolve.core.metrics import NullObserver, ResolveObserver
from hostresolve.models import ResolveOperation


if TYPE_CHECKING:
    from hostresolve.core.writer import SerializedWriter
    from hostresolve.models import ResolveEntry

    from .backend import ResolveBackend


#: Forward entries outlive reverse entries by this factor.
FORWARD_EXPIRY_FACTOR = 2


class EntryStore:
    """Durable forward mapping with an append-only history.

    Args:
        backend: Storage engine.
        writer: Shared serialized write executor.
        observer: Receives one notification per operation.
        reject_pattern: Resolved hostnames matching this pattern are not
            stored (a resolver answering with e.g. a captive-portal name
            during a network glitch must not poison the cache).
        sweep_timeout: Deadline for predicate deletes, which can touch many
            rows. ``None`` uses the writer's ``execution_timeout``.
    """

    def __init__(
        self,
        backend: ResolveBackend,
        writer: SerializedWriter,
        observer: ResolveObserver | None = None,
        *,
        reject_pattern: str | None = None,
        sweep_timeout: float | None = None,
    ) -> None:
        self._backend = backend
        self._writer = writer
        self._observer: ResolveObserver = observer or NullObserver()
        self._reject = re.compile(reject_pattern) if reject_pattern else None
        self._sweep_timeout = sweep_timeout
        self._logger = Logger("resolve.entries")

    def is_rejected(self, resolved_hostname: str) -> bool:
        """Whether ``resolved_hostname`` matches the configured reject pattern."""
        return self._reject is not None and self._reject.search(resolved_hostname) is not None

    async def write_resolved(self, hostname: str, resolved_hostname: str) -> None:
        """Upsert ``hostname -> resolved_hostname`` and refresh its timestamp.

        Non-identity resolutions are also recorded in the history table; a
        history failure is logged and does not fail the write. Idempotent.

        Raises:
            StoreUnavailableError: The backend could not be reached.
            SerializationTimeoutError: No write slot or deadline exceeded.
        """
        if self.is_rejected(resolved_hostname):
            self._logger.warning(
                "resolve_rejected", hostname=hostname, resolved_hostname=resolved_hostname
            )
            self._observer.on_operation(ResolveOperation.WRITE_RESOLVED_REJECTED)
            return

        async def write() -> None:
            await self._backend.upsert_resolve(hostname, resolved_hostname)
            if hostname != resolved_hostname:
                try:
                    await self._backend.upsert_resolve_history(hostname, resolved_hostname)
                except DatabaseError as e:
                    self._logger.error(
                        "resolve_history_write_failed", hostname=hostname, error=str(e)
                    )

        try:
            await self._writer.execute(write, operation=ResolveOperation.WRITE_RESOLVED)
        except ConstraintViolationError as e:
            self._logger.warning("resolve_write_conflict", hostname=hostname, error=str(e))
            return
        except Exception as e:
            self._logger.error("resolve_write_failed", hostname=hostname, error=str(e))
            raise

        self._logger.debug(
            "resolve_written", hostname=hostname, resolved_hostname=resolved_hostname
        )
        self._observer.on_operation(ResolveOperation.WRITE_RESOLVED)

    async def read_resolved(self, hostname: str) -> str | None:
        """Return the resolved hostname, or None when nothing is cached."""
        resolved = await self._backend.fetch_resolved(hostname)
        self._observer.on_operation(ResolveOperation.READ_RESOLVED)
        return resolved

    async def read_all(self) -> list[ResolveEntry]:
        """Return a fresh snapshot of every forward entry, for cache warm-up."""
        entries = await self._backend.fetch_all_resolves()
        self._observer.on_operation(ResolveOperation.READ_RESOLVED_ALL)
        return entries

    async def delete_resolved(self, hostname: str) -> bool:
        """Delete the forward entry for ``hostname``. Returns whether it existed."""

        async def delete() -> bool:
            return await self._backend.delete_resolve(hostname)

        return await self._writer.execute(delete, operation="delete_resolved")

    async def forget_expired(self, grace_minutes: int) -> int:
        """Delete forward entries older than ``2 * grace_minutes``.

        Forward entries get twice the reverse grace window: a stale but
        correct forward mapping is harmless, a stale dial address is not.

        Returns:
            Number of deleted entries.
        """
        window = FORWARD_EXPIRY_FACTOR * grace_minutes

        async def forget() -> int:
            return await self._backend.delete_resolves_older_than(window)

        count = await self._writer.execute(
            forget, operation="forget_expired_resolves", timeout=self._sweep_timeout
        )
        self._logger.info("resolves_expired", count=count, window_minutes=window)
        return count

    async def clear_all(self) -> int:
        """Delete every forward entry, forcing a cold cache. History is kept."""

        async def clear() -> int:
            return await self._backend.delete_all_resolves()

        count = await self._writer.execute(
            clear, operation="clear_resolves", timeout=self._sweep_timeout
        )
        self._logger.warning("resolves_cleared", count=count)
        return count
