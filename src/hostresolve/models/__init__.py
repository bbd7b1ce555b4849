"""Pure frozen dataclasses for the resolution cache. Zero I/O.

Sits at the bottom of the dependency graph: ``core``, ``resolve`` and
``services`` import from here, never the other way around.

See Also:
    [hostresolve.models.resolve][]: Forward, reverse and history records.
    [hostresolve.models.constants][]: Service and operation enumerations.
"""

from .constants import ResolveOperation, ServiceName
from .resolve import (
    InstanceKey,
    ResolveEntry,
    ResolveHistoryRecord,
    UnresolveEntry,
    UnresolveHistoryRecord,
)


__all__ = [
    "InstanceKey",
    "ResolveEntry",
    "ResolveHistoryRecord",
    "ResolveOperation",
    "ServiceName",
    "UnresolveEntry",
    "UnresolveHistoryRecord",
]
