"""Flusher service configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from hostresolve.core.base_service import BaseServiceConfig


class FlushConfig(BaseModel):
    """Guard for the destructive flush."""

    confirm: bool = Field(
        default=False,
        description="Must be true for the flush to delete anything",
    )


class FlusherConfig(BaseServiceConfig):
    """Flusher service configuration."""

    flush: FlushConfig = Field(default_factory=FlushConfig)
