"""Repairer service configuration models.

See Also:
    [Repairer][hostresolve.services.repairer.Repairer]: The service class
        that consumes this configuration.
    [BaseServiceConfig][hostresolve.core.base_service.BaseServiceConfig]:
        Base class providing ``interval``, ``max_consecutive_failures``,
        ``metrics`` and ``resolve`` fields.
"""

from __future__ import annotations

from pydantic import Field

from hostresolve.core.base_service import BaseServiceConfig


class RepairerConfig(BaseServiceConfig):
    """Repairer service configuration."""

    interval: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds between cycle repair passes",
    )
