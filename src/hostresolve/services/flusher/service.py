"""Flusher service for hostresolve.

Administrative escape hatch: deletes every forward entry so all hostnames
are resolved again from scratch. The resolution history and the reverse
store are kept. The flush only runs when ``flush.confirm`` is set.

Examples:
    ```bash
    python -m hostresolve flusher --once
    ```
"""

from __future__ import annotations

from typing import ClassVar

from hostresolve.core.base_service import BaseService
from hostresolve.models.constants import ServiceName

from .configs import FlusherConfig


class Flusher(BaseService[FlusherConfig]):
    """One-shot forward store flush."""

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.FLUSHER
    CONFIG_CLASS: ClassVar[type[FlusherConfig]] = FlusherConfig

    async def run(self) -> None:
        if not self._config.flush.confirm:
            self._logger.warning("flush_not_confirmed", hint="set flush.confirm: true")
            return

        count = await self._cache.clear_all()
        self.inc_counter("entries_flushed", count)
        self._logger.info("flush_completed", deleted=count)

    async def run_forever(self) -> None:
        """Run a single flush; flushing on an interval is never wanted."""
        self._logger.info("one_shot_service", service=self.SERVICE_NAME)
        await self.run()
