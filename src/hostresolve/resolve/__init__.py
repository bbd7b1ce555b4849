"""Resolution cache layer.

Forward store ([EntryStore][hostresolve.resolve.entries.EntryStore]),
reverse store ([ReverseStore][hostresolve.resolve.reverse.ReverseStore]),
the maintenance passes, and the two storage engines, composed by
[ResolveCache][hostresolve.resolve.cache.ResolveCache].
"""

from .backend import CyclicPair, ResolveBackend, find_cyclic_pairs, supersedes
from .cache import ResolveCache, ResolveCacheConfig
from .entries import FORWARD_EXPIRY_FACTOR, EntryStore
from .expiry import SweepResult, run_expiry_sweep
from .memory import MemoryBackend
from .postgres import PostgresBackend
from .repair import RepairResult, run_cycle_repair
from .reverse import ReverseStore


__all__ = [
    "FORWARD_EXPIRY_FACTOR",
    "CyclicPair",
    "EntryStore",
    "MemoryBackend",
    "PostgresBackend",
    "RepairResult",
    "ResolveBackend",
    "ResolveCache",
    "ResolveCacheConfig",
    "ReverseStore",
    "SweepResult",
    "find_cyclic_pairs",
    "run_cycle_repair",
    "run_expiry_sweep",
    "supersedes",
]
