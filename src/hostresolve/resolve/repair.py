"""Cycle repair for the forward store.

Two names that alternately resolve to each other (``A -> B`` written at
``t1``, then ``B -> A`` at ``t2 > t1``) leave the forward store without a
canonical answer. The repair pass deletes the stale half of every such
mutual 2-cycle so only the most recent direction remains.

Each deletion is its own serialized write. A failed deletion is logged and
counted; the remaining pairs are still processed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from hostresolve.core.exceptions import HostResolveError
from hostresolve.core.logger import Logger


if TYPE_CHECKING:
    from .backend import ResolveBackend
    from .entries import EntryStore


_logger = Logger("resolve.repair")


@dataclass(frozen=True, slots=True)
class RepairResult:
    """Outcome of one repair pass."""

    candidates: int = 0
    deleted: int = 0
    failed: int = 0


async def run_cycle_repair(backend: ResolveBackend, entries: EntryStore) -> RepairResult:
    """Delete the earlier entry of every mutual 2-cycle.

    Args:
        backend: Read side used to find the cycles (not serialized).
        entries: Forward store whose serialized delete removes each stale entry.

    Returns:
        Counts of cycles found, entries deleted and deletions that failed.
    """
    pairs = await backend.fetch_cyclic_pairs()
    if not pairs:
        _logger.debug("cycle_repair_clean")
        return RepairResult()

    deleted = 0
    failed = 0
    for pair in pairs:
        early = pair.early
        try:
            if await entries.delete_resolved(early.hostname):
                deleted += 1
        except HostResolveError as e:
            failed += 1
            _logger.error("cycle_repair_delete_failed", hostname=early.hostname, error=str(e))
            continue
        _logger.info(
            "cycle_repair_deleted",
            hostname=early.hostname,
            resolved_hostname=early.resolved_hostname,
            kept=pair.latest.hostname,
        )

    result = RepairResult(candidates=len(pairs), deleted=deleted, failed=failed)
    _logger.info("cycle_repair_completed", candidates=len(pairs), deleted=deleted, failed=failed)
    return result
