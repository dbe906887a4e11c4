from __future__ import annotations

from enum import StrEnum


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    INITIALIZING = "initializing"


class Target(StrEnum):
    """Database endpoints a request may be routed to.

    Values are the tokens the web page sends as ``db`` / ``target``.
    """

    PRIMARY = "master"
    REPLICA = "replica"
    PROXY = "pgcat"


class FailurePolicy(StrEnum):
    """How partial failures are reported.

    ``BEST_EFFORT`` skips undecodable rows and reports a failed count as 0.
    ``STRICT`` raises on the first such failure.
    """

    BEST_EFFORT = "best_effort"
    STRICT = "strict"
