"""Flusher service package."""

from .configs import FlushConfig, FlusherConfig
from .service import Flusher


__all__ = [
    "FlushConfig",
    "Flusher",
    "FlusherConfig",
]
