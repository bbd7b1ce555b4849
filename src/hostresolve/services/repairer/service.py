"""Repairer service for hostresolve.

Periodically removes mutual 2-cycles (``A -> B`` and ``B -> A``) from the
forward store via
[ResolveCache.run_cycle_repair()][hostresolve.resolve.cache.ResolveCache.run_cycle_repair].
The entry written most recently survives; the other is deleted.

Examples:
    ```python
    from hostresolve.core import Store
    from hostresolve.resolve import ResolveCache
    from hostresolve.services import Repairer

    store = Store.from_yaml("config/store.yaml")
    async with store:
        cache = ResolveCache.from_store(store)
        async with Repairer(cache=cache) as repairer:
            await repairer.run_forever()
    ```
"""

from __future__ import annotations

from typing import ClassVar

from hostresolve.core.base_service import BaseService
from hostresolve.models.constants import ServiceName

from .configs import RepairerConfig


class Repairer(BaseService[RepairerConfig]):
    """Forward-store cycle repair service."""

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.REPAIRER
    CONFIG_CLASS: ClassVar[type[RepairerConfig]] = RepairerConfig

    async def run(self) -> None:
        """Execute one repair pass."""
        result = await self._cache.run_cycle_repair()

        self.set_gauge("cycles_found", result.candidates)
        self.set_gauge("repair_failed", result.failed)
        self.inc_counter("entries_repaired", result.deleted)
        self._logger.info(
            "repair_cycle_completed",
            candidates=result.candidates,
            deleted=result.deleted,
            failed=result.failed,
        )
