from __future__ import annotations

from datetime import datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ...core.enums import HealthStatus, Target


class HealthCheckResult(BaseModel):
    """Result of a health check for a single handle."""

    model_config = ConfigDict(frozen=True)

    status: HealthStatus
    address: str
    pool_size: int
    pool_max_size: int
    pool_idle_size: int = 0
    latency_s: float | None = None
    message: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pool_utilization_pct(self) -> float:
        """Pool utilization as percentage."""
        if self.pool_max_size == 0:
            return 0.0
        return (self.pool_size / self.pool_max_size) * 100

    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    @classmethod
    def initializing(cls: type[Self], address: str, pool_max_size: int) -> Self:
        """Create result for pool not yet initialized."""
        return cls(
            status=HealthStatus.INITIALIZING,
            address=address,
            pool_size=0,
            pool_max_size=pool_max_size,
            message="Pool not initialized",
        )

    @classmethod
    def unhealthy(cls: type[Self], address: str, pool_max_size: int, error: str) -> Self:
        """Create result for failed health check.

        Parameters
        ----------
        address
            ``host:port`` of the endpoint.
        pool_max_size
            Maximum pool size from configuration.
        error
            Error message describing the failure.
        """
        return cls(
            status=HealthStatus.UNHEALTHY,
            address=address,
            pool_size=0,
            pool_max_size=pool_max_size,
            message=error,
        )

    @classmethod
    def healthy(
        cls: type[Self],
        address: str,
        pool_size: int,
        pool_max_size: int,
        latency_s: float,
        pool_idle_size: int,
    ) -> Self:
        """Create result for successful health check."""
        return cls(
            status=HealthStatus.HEALTHY,
            address=address,
            pool_size=pool_size,
            pool_max_size=pool_max_size,
            latency_s=latency_s,
            message="Pool is healthy",
            pool_idle_size=pool_idle_size,
        )


class HandleSetHealthResult(BaseModel):
    """Health of every handle in the set.

    Primary down means the demo cannot write at all (unhealthy); a replica or
    proxy down still leaves it usable (degraded).
    """

    model_config = ConfigDict(frozen=True)

    handles: dict[Target, HealthCheckResult]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> HealthStatus:
        primary = self.handles.get(Target.PRIMARY)
        if primary is None or not primary.is_healthy():
            return HealthStatus.UNHEALTHY
        if all(result.is_healthy() for result in self.handles.values()):
            return HealthStatus.HEALTHY
        return HealthStatus.DEGRADED

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY
