"""The fixed set of database handles the demo routes between.

Unlike a read/write splitting cluster, nothing here decides on its own where a
query goes: the caller names a `Target` and gets exactly that handle. Writes
sent to the replica are expected to fail; that failure is what the demo shows.

Usage
-----
>>> async with DatabaseHandleSet.from_config(config) as handles:
...     await handles.primary.afetchrow("INSERT INTO chat (message) VALUES ($1) RETURNING id", "hi")
...     await handles.get(Target.REPLICA).afetchval("SELECT COUNT(*) FROM chat")
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Self

from ...core.enums import Target
from ...logger import get_logger
from .exceptions import HandleSetInitializationError
from .health import HandleSetHealthResult, HealthCheckResult
from .pool import AsyncConnectionPool

if TYPE_CHECKING:
    import types
    from collections.abc import Iterator

    from .config import HandleSetConfig

logger = get_logger(__name__)


class DatabaseHandleSet:
    """Primary, replica and proxy pools, addressed by `Target`.

    Attributes
    ----------
    primary : AsyncConnectionPool
        The writable primary.
    replica : AsyncConnectionPool
        The hot-standby streaming replica (read-only).
    proxy : AsyncConnectionPool
        The pooling proxy, which looks like one more database from here.
    """

    __slots__ = ("_primary", "_proxy", "_replica")

    def __init__(
        self,
        primary: AsyncConnectionPool,
        replica: AsyncConnectionPool,
        proxy: AsyncConnectionPool,
    ) -> None:
        self._primary = primary
        self._replica = replica
        self._proxy = proxy

    async def __aenter__(self) -> Self:
        await self.ainitialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        if exc_type is not None and exc_val is not None:
            logger.error(
                "DatabaseHandleSet exiting with exception",
                exc_type=exc_type.__name__,
                exc_val=str(exc_val),
            )
        await self.aclose()

    @classmethod
    def from_config(cls, config: HandleSetConfig) -> Self:
        """Create the handle set (not yet connected) from its configuration."""
        return cls(
            primary=AsyncConnectionPool(config.primary, name=Target.PRIMARY),
            replica=AsyncConnectionPool(config.replica, name=Target.REPLICA),
            proxy=AsyncConnectionPool(config.proxy, name=Target.PROXY),
        )

    @property
    def primary(self) -> AsyncConnectionPool:
        return self._primary

    @property
    def replica(self) -> AsyncConnectionPool:
        return self._replica

    @property
    def proxy(self) -> AsyncConnectionPool:
        return self._proxy

    def get(self, target: Target) -> AsyncConnectionPool:
        """Return the handle for ``target``."""
        match target:
            case Target.PRIMARY:
                return self._primary
            case Target.REPLICA:
                return self._replica
            case Target.PROXY:
                return self._proxy

    def items(self) -> Iterator[tuple[Target, AsyncConnectionPool]]:
        """Yield ``(target, handle)`` in fixed order: primary, replica, proxy."""
        for target in Target:
            yield target, self.get(target)

    async def ainitialize(self) -> None:
        """Connect and ping every handle.

        Raises
        ------
        HandleSetInitializationError
            If any handle cannot be reached. Handles that did come up are
            closed again before raising; the process should not start.
        """
        handles = list(self.items())
        results = await asyncio.gather(*(pool.ainitialize() for _, pool in handles), return_exceptions=True)

        failure: HandleSetInitializationError | None = None
        for (target, pool), result in zip(handles, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    "Database handle failed to initialize",
                    target=target,
                    address=pool.config.address,
                    error=str(result),
                )
                if failure is None:
                    failure = HandleSetInitializationError(
                        target, pool.config.connection.host, pool.config.connection.port, result
                    )
            else:
                logger.info("Database handle connected", target=target, address=pool.config.address)

        if failure is not None:
            await self.aclose()
            raise failure

        logger.info("Connected to all databases")

    async def aclose(self) -> None:
        """Close every handle. Close failures are logged, not raised."""
        handles = list(self.items())
        results = await asyncio.gather(*(pool.aclose() for _, pool in handles), return_exceptions=True)
        for (target, _), result in zip(handles, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("Database handle failed to close", target=target, error=str(result))

        logger.info("Database handles closed")

    async def ahealth_check(self) -> HandleSetHealthResult:
        """Ping every handle concurrently. A check that raises counts as unhealthy."""
        handles = list(self.items())
        results = await asyncio.gather(*(pool.ahealth_check() for _, pool in handles), return_exceptions=True)

        checks: dict[Target, HealthCheckResult] = {}
        for (target, pool), result in zip(handles, results, strict=True):
            if isinstance(result, BaseException):
                checks[target] = HealthCheckResult.unhealthy(
                    address=pool.config.address,
                    pool_max_size=pool.config.pool.max_size,
                    error=str(result),
                )
            else:
                checks[target] = result
        return HandleSetHealthResult(handles=checks)
