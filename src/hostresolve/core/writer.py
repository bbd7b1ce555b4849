"""
Serialized write execution.

Every mutation of the resolution stores (writes, deletes, cycle repair,
expiry sweeps) is funnelled through one shared
[SerializedWriter][hostresolve.core.writer.SerializedWriter]. It caps the
number of in-flight writers against the backing store with an
``asyncio.Semaphore`` so a burst of discovery results does not turn into
lock contention or deadlocks on the shared tables. Reads never pass
through it.

Each unit of work is bounded twice: waiting for a slot is limited by
``acquire_timeout`` and running it by ``execution_timeout``. Either limit
raises [SerializationTimeoutError][hostresolve.core.exceptions.SerializationTimeoutError],
so one stuck write cannot starve the periodic sweeps.

Examples:
    ```python
    writer = SerializedWriter(WriterConfig(max_in_flight=1))

    async def upsert() -> None:
        await backend.upsert_resolve("web1.vip", "web1-backend-03")

    await writer.execute(upsert, operation="write_resolved")
    ```
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, Field

from .exceptions import SerializationTimeoutError
from .logger import Logger


T = TypeVar("T")


class WriterConfig(BaseModel):
    """Bounds for the serialized write path."""

    max_in_flight: int = Field(
        default=1, ge=1, le=64, description="Maximum concurrently executing writes"
    )
    acquire_timeout: float = Field(
        default=10.0, ge=0.01, description="Seconds to wait for a write slot"
    )
    execution_timeout: float = Field(
        default=30.0, ge=0.01, description="Deadline for a single unit of work (seconds)"
    )


class SerializedWriter:
    """Bounded executor for units of work that mutate the store.

    Injected into [EntryStore][hostresolve.resolve.entries.EntryStore] and
    [ReverseStore][hostresolve.resolve.reverse.ReverseStore]; one instance
    is shared by everything that writes to the same backend.

    The wrapped coroutine's own result or exception is returned or raised
    unchanged. ``CancelledError`` always propagates.
    """

    def __init__(self, config: WriterConfig | None = None) -> None:
        self._config = config or WriterConfig()
        self._semaphore = asyncio.Semaphore(self._config.max_in_flight)
        self._in_flight = 0
        self._logger = Logger("writer")

    @property
    def config(self) -> WriterConfig:
        """The writer configuration (read-only)."""
        return self._config

    @property
    def in_flight(self) -> int:
        """Number of units of work currently executing."""
        return self._in_flight

    async def execute(
        self,
        unit_of_work: Callable[[], Awaitable[T]],
        *,
        operation: str,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> T:
        """Run ``unit_of_work`` once a write slot is free.

        Args:
            unit_of_work: Zero-argument coroutine function performing the write.
            operation: Name used in logs and in the timeout error.
            timeout: Overrides ``execution_timeout`` for this call (bulk
                deletes are given a longer deadline than single-row upserts).

        Raises:
            SerializationTimeoutError: No slot within ``acquire_timeout``, or
                the unit of work exceeded its deadline.
        """
        acquire_timeout = self._config.acquire_timeout
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=acquire_timeout)
        except TimeoutError as e:
            self._logger.warning(
                "write_slot_timeout", operation=operation, timeout=acquire_timeout
            )
            raise SerializationTimeoutError(operation, "acquire", acquire_timeout) from e

        deadline = timeout if timeout is not None else self._config.execution_timeout
        self._in_flight += 1
        try:
            return await asyncio.wait_for(unit_of_work(), timeout=deadline)
        except TimeoutError as e:
            self._logger.warning("write_deadline_exceeded", operation=operation, timeout=deadline)
            raise SerializationTimeoutError(operation, "execute", deadline) from e
        finally:
            self._in_flight -= 1
            self._semaphore.release()
