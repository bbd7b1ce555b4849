"""Sweeper service package."""

from .configs import SweepConfig, SweeperConfig
from .service import Sweeper


__all__ = [
    "SweepConfig",
    "Sweeper",
    "SweeperConfig",
]
