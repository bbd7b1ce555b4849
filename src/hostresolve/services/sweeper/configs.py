"""Sweeper service configuration models.

See Also:
    [Sweeper][hostresolve.services.sweeper.Sweeper]: The service class
        that consumes these configurations.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from hostresolve.core.base_service import BaseServiceConfig


class SweepConfig(BaseModel):
    """What the sweeper does besides expiring entries."""

    report_missing: bool = Field(
        default=True,
        description="Count registered instances with no live forward entry after each sweep",
    )


class SweeperConfig(BaseServiceConfig):
    """Sweeper service configuration.

    The expiry window itself is ``resolve.expiry_minutes``; forward entries
    are kept twice as long as reverse entries.
    """

    interval: float = Field(
        default=300.0,
        ge=1.0,
        description="Seconds between expiry sweeps",
    )
    sweep: SweepConfig = Field(default_factory=SweepConfig)
