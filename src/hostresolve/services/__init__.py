"""The resolution cache maintenance services.

Services are the top layer, depending on [hostresolve.core][] and
[hostresolve.resolve][]. Each extends
[BaseService][hostresolve.core.base_service.BaseService] and implements
``async def run()`` for one cycle of work.

Attributes:
    Repairer: Periodic removal of mutual 2-cycles from the forward store.
    Sweeper: Periodic expiry of stale reverse and forward entries.
    Flusher: One-shot deletion of every forward entry.
"""

from .flusher import Flusher, FlusherConfig
from .repairer import Repairer, RepairerConfig
from .sweeper import Sweeper, SweeperConfig


__all__ = [
    "Flusher",
    "FlusherConfig",
    "Repairer",
    "RepairerConfig",
    "Sweeper",
    "SweeperConfig",
]
