"""
Prometheus instrumentation for the cache and its maintenance services.

Two kinds of instrumentation live here:

* Service metrics, recorded by
  [BaseService.run_forever()][hostresolve.core.base_service.BaseService.run_forever]
  and by services through ``set_gauge()`` / ``inc_counter()``.
* Resolution operation counts. The stores never touch a global counter;
  they call an injected [ResolveObserver][hostresolve.core.metrics.ResolveObserver].
  [PrometheusObserver][hostresolve.core.metrics.PrometheusObserver] forwards
  those calls to ``RESOLVE_OPERATIONS``; tests use
  [NullObserver][hostresolve.core.metrics.NullObserver] or a mock.

``MetricsServer`` serves the default registry over aiohttp for scraping.
Every metric name carries the ``hostresolve_`` prefix.

Metrics:
    SERVICE_INFO:               Which service this process runs.
    SERVICE_GAUGE:              Per-service state, e.g. ``missing_instances``.
    SERVICE_COUNTER:            Per-service totals, e.g. ``entries_repaired``.
    CYCLE_DURATION_SECONDS:     Wall time of each ``run()`` cycle.
    RESOLVE_OPERATIONS:         Reads and writes seen by the resolution stores.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


NAMESPACE = "hostresolve"


class MetricsConfig(BaseModel):
    """Where the ``/metrics`` endpoint listens.

    Bind ``host`` to ``"0.0.0.0"`` when the scraper runs outside the container.
    """

    enabled: bool = Field(default=False, description="Record metrics and serve them")
    port: int = Field(default=8000, ge=1024, le=65535)
    host: str = Field(default="127.0.0.1")
    path: str = Field(default="/metrics")


# ---------------------------------------------------------------------------
# Service Metrics
# ---------------------------------------------------------------------------

SERVICE_INFO = Info("service", "Maintenance service run by this process", namespace=NAMESPACE)

CYCLE_DURATION_SECONDS = Histogram(
    "cycle_duration_seconds",
    "Wall time of one maintenance cycle",
    ["service"],
    namespace=NAMESPACE,
    buckets=(0.05, 0.25, 1, 5, 15, 60, 300),
)

# Set by run_forever on every service:
#   gauge:   consecutive_failures, last_cycle_timestamp
#   counter: cycles_success, cycles_failed, errors_{type}
SERVICE_GAUGE = Gauge(
    "service_gauge",
    "Current value of a named service measurement",
    ["service", "name"],
    namespace=NAMESPACE,
)

SERVICE_COUNTER = Counter(
    "service_counter",
    "Running total of a named service measurement",
    ["service", "name"],
    namespace=NAMESPACE,
)


# ---------------------------------------------------------------------------
# Resolution Operation Observers
# ---------------------------------------------------------------------------

RESOLVE_OPERATIONS = Counter(
    "resolve_operations",
    "Resolution cache operations by name",
    ["operation"],
    namespace=NAMESPACE,
)


@runtime_checkable
class ResolveObserver(Protocol):
    """Receives one call per resolution cache operation."""

    def on_operation(self, operation: str) -> None: ...


class NullObserver:
    """Observer that discards every notification."""

    def on_operation(self, operation: str) -> None:
        return None


class PrometheusObserver:
    """Observer that increments ``RESOLVE_OPERATIONS{operation=...}``."""

    def on_operation(self, operation: str) -> None:
        RESOLVE_OPERATIONS.labels(operation=operation).inc()


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """aiohttp application answering ``GET <path>`` with the registry contents.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... service runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Bind the server. No-op when metrics are disabled.

        Raises:
            OSError: The port is taken or cannot be bound.
        """
        if not self._config.enabled:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self.render)
        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        await web.TCPSite(runner, self._config.host, self._config.port).start()
        self._runner = runner

    async def stop(self) -> None:
        """Stop the server. Idempotent."""
        runner, self._runner = self._runner, None
        if runner is not None:
            await runner.cleanup()

    @staticmethod
    async def render(_request: web.Request) -> web.Response:
        return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create and start a metrics server; the caller must ``stop()`` it."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
