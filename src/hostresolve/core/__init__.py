"""Core layer: storage access, write serialization and the service runtime.

Depends only on ``hostresolve.models``. The service runtime in
[hostresolve.core.base_service][] also embeds the cache configuration, so it
is imported from its module rather than re-exported here.

Attributes:
    Pool: Async PostgreSQL connection pool with retry/backoff.
        See [Pool][hostresolve.core.pool.Pool].
    Store: Database facade with per-category default timeouts. The
        resolution queries take a [Store][hostresolve.core.store.Store],
        never a [Pool][hostresolve.core.pool.Pool].
    SerializedWriter: Bounded executor every mutation passes through.
        See [SerializedWriter][hostresolve.core.writer.SerializedWriter].
    Logger: Structured logger supporting key=value and JSON output modes.
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint.
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
"""

from .exceptions import (
    ConfigurationError,
    ConstraintViolationError,
    DatabaseError,
    HostResolveError,
    QueryError,
    SerializationTimeoutError,
    StoreUnavailableError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    CYCLE_DURATION_SECONDS,
    RESOLVE_OPERATIONS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
    MetricsServer,
    NullObserver,
    PrometheusObserver,
    ResolveObserver,
    start_metrics_server,
)
from .pool import (
    DatabaseConfig,
    Pool,
    PoolConfig,
    PoolLimitsConfig,
    PoolRetryConfig,
    PoolTimeoutsConfig,
    ServerSettingsConfig,
)
from .store import Store, StoreConfig, StoreTimeoutsConfig
from .writer import SerializedWriter, WriterConfig
from .yaml import load_yaml


__all__ = [
    "CYCLE_DURATION_SECONDS",
    "RESOLVE_OPERATIONS",
    "SERVICE_COUNTER",
    "SERVICE_GAUGE",
    "SERVICE_INFO",
    "ConfigurationError",
    "ConstraintViolationError",
    "DatabaseConfig",
    "DatabaseError",
    "HostResolveError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "NullObserver",
    "Pool",
    "PoolConfig",
    "PoolLimitsConfig",
    "PoolRetryConfig",
    "PoolTimeoutsConfig",
    "PrometheusObserver",
    "QueryError",
    "ResolveObserver",
    "SerializationTimeoutError",
    "SerializedWriter",
    "ServerSettingsConfig",
    "Store",
    "StoreConfig",
    "StoreTimeoutsConfig",
    "StoreUnavailableError",
    "StructuredFormatter",
    "WriterConfig",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
