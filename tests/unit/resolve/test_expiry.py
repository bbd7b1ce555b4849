"""Unit tests for resolve.expiry module."""

from unittest.mock import AsyncMock, MagicMock

from hostresolve.core.exceptions import StoreUnavailableError
from hostresolve.resolve import EntryStore, ReverseStore, SweepResult, run_expiry_sweep


def _stores(reverse_result, forward_result):
    entries = MagicMock(spec=EntryStore)
    reverse = MagicMock(spec=ReverseStore)
    reverse.expire_stale = AsyncMock(side_effect=[reverse_result])
    entries.forget_expired = AsyncMock(side_effect=[forward_result])
    return entries, reverse


class TestRunExpirySweep:
    async def test_both_sweeps(self):
        entries, reverse = _stores(3, 5)
        result = await run_expiry_sweep(entries, reverse, 30)
        assert result == SweepResult(reverse_expired=3, forward_expired=5, failed=0)
        reverse.expire_stale.assert_awaited_once_with(30)
        entries.forget_expired.assert_awaited_once_with(30)

    async def test_reverse_failure_does_not_stop_forward(self):
        entries, reverse = _stores(StoreUnavailableError("down"), 2)
        result = await run_expiry_sweep(entries, reverse, 30)
        assert result == SweepResult(reverse_expired=0, forward_expired=2, failed=1)

    async def test_forward_failure_reported(self):
        entries, reverse = _stores(1, StoreUnavailableError("down"))
        result = await run_expiry_sweep(entries, reverse, 30)
        assert result == SweepResult(reverse_expired=1, forward_expired=0, failed=1)

    async def test_both_fail(self):
        entries, reverse = _stores(StoreUnavailableError("a"), StoreUnavailableError("b"))
        result = await run_expiry_sweep(entries, reverse, 30)
        assert result.failed == 2
