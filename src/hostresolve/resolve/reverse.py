"""Reverse cache: registered hostname to the address to dial.

A registration is a heartbeat: every
[write_unresolved()][hostresolve.resolve.reverse.ReverseStore.write_unresolved]
refreshes ``last_registered_at`` even when the address is unchanged, and
[expire_stale()][hostresolve.resolve.reverse.ReverseStore.expire_stale]
drops entries whose heartbeat stopped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hostresolve.core.exceptions import ConstraintViolationError
from hostresolve.core.logger import Logger
from hostresolve.core.metrics import NullObserver, ResolveObserver
from hostresolve.models import ResolveOperation


if TYPE_CHECKING:
    from hostresolve.core.writer import SerializedWriter
    from hostresolve.models import InstanceKey

    from .backend import ResolveBackend


class ReverseStore:
    """Durable dial-address mapping with a replace-on-write history."""

    def __init__(
        self,
        backend: ResolveBackend,
        writer: SerializedWriter,
        observer: ResolveObserver | None = None,
        *,
        sweep_timeout: float | None = None,
    ) -> None:
        self._backend = backend
        self._writer = writer
        self._observer: ResolveObserver = observer or NullObserver()
        self._sweep_timeout = sweep_timeout
        self._logger = Logger("resolve.reverse")

    async def write_unresolved(self, instance_key: InstanceKey, unresolved_hostname: str) -> None:
        """Register ``unresolved_hostname`` as the dial address of ``instance_key``.

        Raises:
            StoreUnavailableError: The backend could not be reached.
            SerializationTimeoutError: No write slot or deadline exceeded.
        """
        hostname = instance_key.hostname

        async def write() -> None:
            await self._backend.upsert_unresolve(hostname, unresolved_hostname, instance_key.port)
            await self._backend.replace_unresolve_history(hostname, unresolved_hostname)

        try:
            await self._writer.execute(write, operation=ResolveOperation.WRITE_UNRESOLVED)
        except ConstraintViolationError as e:
            self._logger.warning("unresolve_write_conflict", hostname=hostname, error=str(e))
            return
        except Exception as e:
            self._logger.error("unresolve_write_failed", hostname=hostname, error=str(e))
            raise

        self._logger.debug(
            "unresolve_written", instance=str(instance_key), unresolved_hostname=unresolved_hostname
        )
        self._observer.on_operation(ResolveOperation.WRITE_UNRESOLVED)

    async def read_unresolved(self, hostname: str) -> str:
        """Return the address to dial for ``hostname``; ``hostname`` itself on a miss."""
        unresolved = await self._backend.fetch_unresolved(hostname)
        self._observer.on_operation(ResolveOperation.READ_UNRESOLVED)
        return unresolved if unresolved is not None else hostname

    async def deregister(self, instance_key: InstanceKey) -> None:
        """Remove the registration of a decommissioned instance. No error if absent."""

        async def delete() -> bool:
            return await self._backend.delete_unresolve(instance_key.hostname)

        try:
            existed = await self._writer.execute(delete, operation="deregister_unresolve")
        except Exception as e:
            self._logger.error("deregister_failed", instance=str(instance_key), error=str(e))
            raise
        self._logger.info("unresolve_deregistered", instance=str(instance_key), existed=existed)

    async def expire_stale(self, grace_minutes: int) -> int:
        """Delete registrations not refreshed within ``grace_minutes``.

        Returns:
            Number of deleted entries.
        """

        async def expire() -> int:
            return await self._backend.delete_unresolves_older_than(grace_minutes)

        count = await self._writer.execute(
            expire, operation="expire_stale_unresolves", timeout=self._sweep_timeout
        )
        self._logger.info("unresolves_expired", count=count, window_minutes=grace_minutes)
        return count

    async def find_missing(self) -> set[InstanceKey]:
        """Return instances registered here that no forward entry resolves to.

        Each key carries the registered dial address and port: the name the
        caller must run through resolution again.
        """
        return await self._backend.fetch_missing_keys()
