r"""hostresolve -- durable hostname resolution cache for a monitored fleet.

Stores, for each observed hostname, the canonical name it resolves to, and
for each canonical instance, the literal address to dial. Three maintenance
services keep the cache consistent: cycle repair, expiry and flush.

Imports flow strictly downward:

```text
       services          Maintenance services and CLI
          |
       resolve           Forward/reverse stores, repair, expiry, engines
          |
        core             Pool, Store, writer, logging, metrics, base service
          |
       models            Pure frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from hostresolve import ResolveCache``) use lazy
    loading and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("hostresolve")

__all__ = [
    "BaseService",
    "Flusher",
    "FlusherConfig",
    "InstanceKey",
    "Logger",
    "MemoryBackend",
    "Pool",
    "PoolConfig",
    "PostgresBackend",
    "Repairer",
    "RepairerConfig",
    "ResolveCache",
    "ResolveCacheConfig",
    "ResolveEntry",
    "Store",
    "StoreConfig",
    "Sweeper",
    "SweeperConfig",
    "UnresolveEntry",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseService": ("hostresolve.core.base_service", "BaseService"),
    "Logger": ("hostresolve.core", "Logger"),
    "Pool": ("hostresolve.core", "Pool"),
    "PoolConfig": ("hostresolve.core", "PoolConfig"),
    "Store": ("hostresolve.core", "Store"),
    "StoreConfig": ("hostresolve.core", "StoreConfig"),
    "InstanceKey": ("hostresolve.models", "InstanceKey"),
    "ResolveEntry": ("hostresolve.models", "ResolveEntry"),
    "UnresolveEntry": ("hostresolve.models", "UnresolveEntry"),
    "MemoryBackend": ("hostresolve.resolve", "MemoryBackend"),
    "PostgresBackend": ("hostresolve.resolve", "PostgresBackend"),
    "ResolveCache": ("hostresolve.resolve", "ResolveCache"),
    "ResolveCacheConfig": ("hostresolve.resolve", "ResolveCacheConfig"),
    "Flusher": ("hostresolve.services", "Flusher"),
    "FlusherConfig": ("hostresolve.services", "FlusherConfig"),
    "Repairer": ("hostresolve.services", "Repairer"),
    "RepairerConfig": ("hostresolve.services", "RepairerConfig"),
    "Sweeper": ("hostresolve.services", "Sweeper"),
    "SweeperConfig": ("hostresolve.services", "SweeperConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'hostresolve' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
