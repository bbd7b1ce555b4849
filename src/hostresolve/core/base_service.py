"""
Abstract base class for the hostresolve maintenance services.

``BaseService[ConfigT]`` gives every service the same lifecycle: structured
logging via [Logger][hostresolve.core.logger.Logger], graceful shutdown via
``asyncio.Event``, interval-based cycling with
[run_forever()][hostresolve.core.base_service.BaseService.run_forever], a
consecutive failure limit, and Prometheus tracking of every cycle.

Services hold no state between cycles. Everything they act on lives in the
[ResolveCache][hostresolve.resolve.cache.ResolveCache] injected into them.

See Also:
    [ResolveCache][hostresolve.resolve.cache.ResolveCache]: Resolution cache
        injected into every service.
    [BaseServiceConfig][hostresolve.core.base_service.BaseServiceConfig]: Base
        configuration model for all services.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field

from hostresolve.resolve.cache import ResolveCacheConfig

from .logger import Logger
from .metrics import (
    CYCLE_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
)
from .yaml import load_yaml


if TYPE_CHECKING:
    from types import TracebackType

    from hostresolve.models.constants import ServiceName
    from hostresolve.resolve.cache import ResolveCache


class BaseServiceConfig(BaseModel):
    """Settings every maintenance service accepts.

    Subclasses add their own sections. ``resolve`` is read by the CLI when
    it builds the [ResolveCache][hostresolve.resolve.cache.ResolveCache] the
    service will maintain.
    """

    interval: float = Field(default=300.0, ge=1.0, description="Seconds between cycles")
    max_consecutive_failures: int = Field(
        default=5,
        ge=0,
        description="Failed cycles in a row before run_forever gives up (0 = never)",
    )
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    resolve: ResolveCacheConfig = Field(default_factory=ResolveCacheConfig)


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Abstract base class for all hostresolve services.

    Subclasses set ``SERVICE_NAME`` and ``CONFIG_CLASS`` and implement
    [run()][hostresolve.core.base_service.BaseService.run].

    Attributes:
        SERVICE_NAME: Label used for the logger and every metric.
        CONFIG_CLASS: Pydantic model the factories parse configuration into.

    Note:
        The CLI nests the lifecycle as ``async with store:`` then
        ``async with service:`` then
        [run_forever()][hostresolve.core.base_service.BaseService.run_forever],
        or a single [run()][hostresolve.core.base_service.BaseService.run]
        with ``--once``.
    """

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseModel]]

    def __init__(self, cache: ResolveCache, config: ConfigT | None = None) -> None:
        self._cache = cache
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.SERVICE_NAME)
        self._shutdown_event = asyncio.Event()

    @property
    def config(self) -> ConfigT:
        return self._config

    @property
    def cache(self) -> ResolveCache:
        return self._cache

    @abstractmethod
    async def run(self) -> None:
        """Do one bounded unit of maintenance and return."""
        ...

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    def request_shutdown(self) -> None:
        """Ask the loop to stop after the current cycle. Signal-handler safe."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        return not self._shutdown_event.is_set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Sleep up to ``timeout`` seconds; return ``True`` if shutdown cut it short."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    async def run_forever(self) -> None:
        """Call [run()][hostresolve.core.base_service.BaseService.run] every ``interval`` seconds.

        Stops when shutdown is requested, or after
        ``max_consecutive_failures`` failed cycles in a row (``0`` never
        stops). A successful cycle resets the count.

        Every cycle records ``cycles_success`` or ``cycles_failed`` (plus
        ``errors_{ExceptionType}``), the ``consecutive_failures`` and
        ``last_cycle_timestamp`` gauges, and ``cycle_duration_seconds``.
        ``CancelledError``, ``KeyboardInterrupt`` and ``SystemExit`` are
        never counted and always propagate.
        """
        interval = self._config.interval
        limit = self._config.max_consecutive_failures

        if self._config.metrics.enabled:
            SERVICE_INFO.info({"service": self.SERVICE_NAME})
        self._logger.info("run_forever_started", interval=interval, max_consecutive_failures=limit)

        failures = 0
        while self.is_running:
            failures = await self._run_cycle(failures)
            if limit and failures >= limit:
                self._logger.critical(
                    "max_consecutive_failures_reached", failures=failures, limit=limit
                )
                break
            if await self.wait(interval):
                break

        self._logger.info("run_forever_stopped")

    async def _run_cycle(self, failures: int) -> int:
        """Run one cycle and return the new consecutive failure count."""
        started = time.monotonic()
        try:
            await self.run()
        except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:  # error boundary for a single cycle
            failures += 1
            self.inc_counter("cycles_failed")
            self.inc_counter(f"errors_{type(e).__name__}")
            self.set_gauge("consecutive_failures", failures)
            self._logger.error("run_cycle_error", error=str(e), consecutive_failures=failures)
            return failures

        if self._config.metrics.enabled:
            CYCLE_DURATION_SECONDS.labels(service=self.SERVICE_NAME).observe(
                time.monotonic() - started
            )
        self.inc_counter("cycles_success")
        self.set_gauge("consecutive_failures", 0)
        self.set_gauge("last_cycle_timestamp", time.time())
        self._logger.info("cycle_completed", next_cycle_s=self._config.interval)
        return 0

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def config_from_yaml(cls, config_path: str) -> ConfigT:
        """Parse a YAML file into ``CONFIG_CLASS``.

        Separate from construction because the cache is built from the
        ``resolve`` section before the service exists.
        """
        return cast("ConfigT", cls.CONFIG_CLASS(**load_yaml(config_path)))

    @classmethod
    def from_yaml(cls, config_path: str, cache: ResolveCache, **kwargs: Any) -> Self:
        return cls.from_dict(load_yaml(config_path), cache=cache, **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], cache: ResolveCache, **kwargs: Any) -> Self:
        """Build a service whose config is ``CONFIG_CLASS(**data)``.

        Extra keyword arguments go to the constructor.
        """
        return cls(cache=cache, config=cast("ConfigT", cls.CONFIG_CLASS(**data)), **kwargs)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        self._shutdown_event.clear()
        self._logger.info("service_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._shutdown_event.set()
        self._logger.info("service_stopped")

    # -------------------------------------------------------------------------
    # Custom Metrics
    # -------------------------------------------------------------------------

    def set_gauge(self, name: str, value: float) -> None:
        """Set ``SERVICE_GAUGE{service, name}``. No-op when metrics are disabled."""
        if self._config.metrics.enabled:
            SERVICE_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        """Increment ``SERVICE_COUNTER{service, name}``. No-op when metrics are disabled."""
        if self._config.metrics.enabled:
            SERVICE_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)
