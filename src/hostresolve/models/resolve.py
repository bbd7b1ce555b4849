"""Hostname resolution records.

Pure data containers for the rows of the four resolution tables:
``hostname_resolve`` (forward), ``hostname_resolve_history``,
``hostname_unresolve`` (reverse) and ``hostname_unresolve_history``.

All validation happens in ``__post_init__`` so invalid instances never
escape the constructor. Timestamps are integer Unix microseconds, assigned
by the backing store and never by callers. Writes landing within the same
second still order correctly.

See Also:
    [ResolveBackend][hostresolve.resolve.backend.ResolveBackend]: Storage
        contract that produces and consumes these records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ._validation import validate_hostname, validate_port, validate_timestamp


@dataclass(frozen=True, slots=True)
class InstanceKey:
    """A monitored instance, identified by ``(hostname, port)``.

    Owned by the discovery layer. The resolution core only persists its
    hostname (as the reverse-store key) and its port (so that
    [find_missing()][hostresolve.resolve.reverse.ReverseStore.find_missing]
    can hand back complete keys).

    Examples:
        ```python
        key = InstanceKey("db-backend-03", 3306)
        str(key)  # 'db-backend-03:3306'
        ```
    """

    hostname: str
    port: int

    def __post_init__(self) -> None:
        validate_hostname(self.hostname, "hostname")
        validate_port(self.port, "port")

    def __str__(self) -> str:
        return f"{self.hostname}:{self.port}"


@dataclass(frozen=True, slots=True)
class ResolveEntry:
    """A forward mapping ``hostname -> resolved_hostname``.

    At most one live entry exists per ``hostname``. ``resolved_hostname``
    may equal ``hostname`` (a no-op resolution).

    Attributes:
        hostname: The observed, raw name. Unique key.
        resolved_hostname: Canonical form the hostname maps to.
        resolved_at: Unix microseconds of the last write.
    """

    hostname: str
    resolved_hostname: str
    resolved_at: int

    def __post_init__(self) -> None:
        validate_hostname(self.hostname, "hostname")
        validate_hostname(self.resolved_hostname, "resolved_hostname")
        validate_timestamp(self.resolved_at, "resolved_at")

    @property
    def is_identity(self) -> bool:
        """Whether the hostname resolves to itself."""
        return self.hostname == self.resolved_hostname

    @classmethod
    def from_row(cls, row: Any) -> ResolveEntry:
        """Build an entry from a mapping-like database row."""
        return cls(
            hostname=row["hostname"],
            resolved_hostname=row["resolved_hostname"],
            resolved_at=row["resolved_at"],
        )


@dataclass(frozen=True, slots=True)
class ResolveHistoryRecord:
    """Audit row for a non-identity forward resolution.

    Keyed by ``resolved_hostname``: a later write resolving to the same
    name moves ``hostname`` forward to the latest writer and refreshes
    ``resolved_at``, while ``first_seen_at`` keeps the time the mapping
    was first recorded. Never read by the cache logic.
    """

    hostname: str
    resolved_hostname: str
    first_seen_at: int
    resolved_at: int

    def __post_init__(self) -> None:
        validate_hostname(self.hostname, "hostname")
        validate_hostname(self.resolved_hostname, "resolved_hostname")
        validate_timestamp(self.first_seen_at, "first_seen_at")
        validate_timestamp(self.resolved_at, "resolved_at")
        if self.resolved_at < self.first_seen_at:
            raise ValueError("resolved_at must not precede first_seen_at")


@dataclass(frozen=True, slots=True)
class UnresolveEntry:
    """A reverse mapping ``hostname -> unresolved_hostname``.

    Attributes:
        hostname: Registered identity of a monitored instance. Unique key.
        unresolved_hostname: The literal address to dial right now.
        port: Port of the instance that registered this entry.
        last_registered_at: Unix microseconds of the last registration. Refreshed
            on every write, even when ``unresolved_hostname`` is unchanged.
    """

    hostname: str
    unresolved_hostname: str
    port: int
    last_registered_at: int

    def __post_init__(self) -> None:
        validate_hostname(self.hostname, "hostname")
        validate_hostname(self.unresolved_hostname, "unresolved_hostname")
        validate_port(self.port, "port")
        validate_timestamp(self.last_registered_at, "last_registered_at")

    @property
    def dial_key(self) -> InstanceKey:
        """The instance key to dial: unresolved hostname plus registered port."""
        return InstanceKey(self.unresolved_hostname, self.port)

    @classmethod
    def from_row(cls, row: Any) -> UnresolveEntry:
        """Build an entry from a mapping-like database row."""
        return cls(
            hostname=row["hostname"],
            unresolved_hostname=row["unresolved_hostname"],
            port=row["port"],
            last_registered_at=row["last_registered_at"],
        )


@dataclass(frozen=True, slots=True)
class UnresolveHistoryRecord:
    """Audit row for a reverse registration, replaced on every write."""

    hostname: str
    unresolved_hostname: str
    last_registered_at: int

    def __post_init__(self) -> None:
        validate_hostname(self.hostname, "hostname")
        validate_hostname(self.unresolved_hostname, "unresolved_hostname")
        validate_timestamp(self.last_registered_at, "last_registered_at")
