"""Time-based eviction of stale resolution entries.

Two independent predicate deletes. Reverse entries expire after the
configured window; forward entries after twice that window (see
[FORWARD_EXPIRY_FACTOR][hostresolve.resolve.entries.FORWARD_EXPIRY_FACTOR]).
A failure of one sweep is logged and does not prevent the other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from hostresolve.core.exceptions import HostResolveError
from hostresolve.core.logger import Logger


if TYPE_CHECKING:
    from .entries import EntryStore
    from .reverse import ReverseStore


_logger = Logger("resolve.expiry")


@dataclass(frozen=True, slots=True)
class SweepResult:
    """Outcome of one expiry sweep."""

    reverse_expired: int = 0
    forward_expired: int = 0
    failed: int = 0


async def run_expiry_sweep(
    entries: EntryStore,
    reverse: ReverseStore,
    expiry_minutes: int,
) -> SweepResult:
    """Expire stale reverse and forward entries.

    Args:
        entries: Forward store, swept with ``2 * expiry_minutes``.
        reverse: Reverse store, swept with ``expiry_minutes``.
        expiry_minutes: Reverse staleness window.
    """
    reverse_expired = 0
    forward_expired = 0
    failed = 0

    try:
        reverse_expired = await reverse.expire_stale(expiry_minutes)
    except HostResolveError as e:
        failed += 1
        _logger.error("reverse_expiry_failed", error=str(e))

    try:
        forward_expired = await entries.forget_expired(expiry_minutes)
    except HostResolveError as e:
        failed += 1
        _logger.error("forward_expiry_failed", error=str(e))

    return SweepResult(
        reverse_expired=reverse_expired, forward_expired=forward_expired, failed=failed
    )
