"""Repairer service package."""

from .configs import RepairerConfig
from .service import Repairer


__all__ = [
    "Repairer",
    "RepairerConfig",
]
