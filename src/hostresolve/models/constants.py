"""Shared constants for the models layer.

See Also:
    [BaseService][hostresolve.core.base_service.BaseService]: Uses
        [ServiceName][hostresolve.models.constants.ServiceName] as the
        logging and metrics identifier.
"""

from __future__ import annotations

from enum import StrEnum


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging, metrics, and the CLI.

    Attributes:
        REPAIRER: Periodic cycle repair over the forward store
            ([Repairer][hostresolve.services.repairer.Repairer]).
        SWEEPER: Periodic expiry of stale forward and reverse entries
            ([Sweeper][hostresolve.services.sweeper.Sweeper]).
        FLUSHER: One-shot administrative flush of the forward store
            ([Flusher][hostresolve.services.flusher.Flusher]).
    """

    REPAIRER = "repairer"
    SWEEPER = "sweeper"
    FLUSHER = "flusher"


class ResolveOperation(StrEnum):
    """Operation names reported to a
    [ResolveObserver][hostresolve.core.metrics.ResolveObserver].
    """

    WRITE_RESOLVED = "write_resolved"
    WRITE_RESOLVED_REJECTED = "write_resolved_rejected"
    WRITE_UNRESOLVED = "write_unresolved"
    READ_RESOLVED = "read_resolved"
    READ_UNRESOLVED = "read_unresolved"
    READ_RESOLVED_ALL = "read_resolved_all"
