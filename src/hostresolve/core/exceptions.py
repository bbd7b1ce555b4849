"""hostresolve exception hierarchy.

Typed exceptions that separate retryable failures (the store or the write
slot was unavailable) from permanent ones, so callers can retry on the next
discovery or sweep cycle without catching bare ``Exception``.

Exception hierarchy:

```text
HostResolveError (base -- never raised directly)
├── ConfigurationError            -- config validation, missing keys, bad YAML
├── DatabaseError                 -- backing store failures
│   ├── StoreUnavailableError     -- retryable: unreachable, timeout, pool exhausted
│   ├── QueryError                -- permanent: bad SQL, data error
│   └── ConstraintViolationError  -- unexpected under upsert semantics; writes no-op
└── SerializationTimeoutError     -- retryable: no serialized write slot in time
```

See Also:
    [Pool][hostresolve.core.pool.Pool]: Maps asyncpg failures onto
        [DatabaseError][hostresolve.core.exceptions.DatabaseError] subclasses.
    [SerializedWriter][hostresolve.core.writer.SerializedWriter]: Raises
        [SerializationTimeoutError][hostresolve.core.exceptions.SerializationTimeoutError].
"""

from __future__ import annotations


class HostResolveError(Exception):
    """Base exception for all hostresolve errors. Never raised directly."""


class ConfigurationError(HostResolveError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


class DatabaseError(HostResolveError):
    """Base for all backing-store errors."""


class StoreUnavailableError(DatabaseError):
    """The backing store is unreachable or did not answer in time.

    Retryable: the caller may try again on its next cycle.
    """


class QueryError(DatabaseError):
    """Permanent store error: malformed query or rejected data.

    Callers should NOT retry -- the query itself is wrong.
    """


class ConstraintViolationError(DatabaseError):
    """A uniqueness or integrity constraint rejected a write.

    Should not occur given upsert semantics. Write paths log it and treat
    the write as a no-op.
    """


# ---------------------------------------------------------------------------
# Write serialization
# ---------------------------------------------------------------------------


class SerializationTimeoutError(HostResolveError):
    """A write could not acquire a serialized slot, or overran its deadline.

    Retryable.

    Attributes:
        operation: Name of the unit of work that timed out.
        phase: ``"acquire"`` when no slot was obtained in time,
            ``"execute"`` when the unit of work exceeded its deadline.
    """

    def __init__(self, operation: str, phase: str, timeout: float) -> None:
        self.operation = operation
        self.phase = phase
        self.timeout = timeout
        super().__init__(f"{operation}: serialized write {phase} timed out after {timeout}s")
