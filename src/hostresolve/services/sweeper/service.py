"""Sweeper service for hostresolve.

Periodically expires reverse entries whose heartbeat stopped and forward
entries that were not re-observed, via
[ResolveCache.run_expiry_sweep()][hostresolve.resolve.cache.ResolveCache.run_expiry_sweep].
Optionally reports how many registered instances are left with no live
forward entry (callers re-resolve those through
[ResolveCache.find_missing()][hostresolve.resolve.cache.ResolveCache.find_missing]).
"""

from __future__ import annotations

from typing import ClassVar

from hostresolve.core.base_service import BaseService
from hostresolve.core.exceptions import HostResolveError
from hostresolve.models.constants import ServiceName

from .configs import SweeperConfig


class Sweeper(BaseService[SweeperConfig]):
    """Time-based expiry service.

    The two sweeps are independent; a failed sweep is counted and the
    cycle still completes.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.SWEEPER
    CONFIG_CLASS: ClassVar[type[SweeperConfig]] = SweeperConfig

    async def run(self) -> None:
        """Execute one expiry sweep."""
        result = await self._cache.run_expiry_sweep()

        self.inc_counter("reverse_expired", result.reverse_expired)
        self.inc_counter("forward_expired", result.forward_expired)
        self.set_gauge("sweeps_failed", result.failed)

        if self._config.sweep.report_missing:
            try:
                missing = await self._cache.find_missing()
            except HostResolveError as e:
                self._logger.error("find_missing_failed", error=str(e))
            else:
                self.set_gauge("missing_instances", len(missing))
                if missing:
                    self._logger.info(
                        "missing_instances_found",
                        count=len(missing),
                        sample=",".join(sorted(str(k) for k in missing)[:10]),
                    )

        self._logger.info(
            "sweep_cycle_completed",
            reverse_expired=result.reverse_expired,
            forward_expired=result.forward_expired,
            failed=result.failed,
        )
