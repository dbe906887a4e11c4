"""Async connection pool for one PostgreSQL endpoint using asyncpg.

Every database handle of the demo (primary, replica, proxy) is one of these.
The asyncpg pool does its own locking, so a single instance is shared by all
concurrent requests.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Self

import asyncpg
from asyncpg import Pool, Record
from profilist.timer import Timer

from ...logger import get_logger
from .exceptions import PoolNotInitializedError
from .health import HealthCheckResult

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from asyncpg.pool import PoolConnectionProxy

    from .config import AsyncpgConfig

logger = get_logger(__name__)


class AsyncConnectionPool:
    """Async connection pool for a single PostgreSQL database.

    Examples
    --------
    >>> async with AsyncConnectionPool(config, name="master") as pool:
    ...     rows = await pool.afetch("SELECT id, message, created_at FROM chat")
    """

    __slots__ = ("_config", "_init_lock", "_name", "_pool")

    def __init__(self, config: AsyncpgConfig, name: str = "postgres") -> None:
        self._config = config
        self._name = name
        self._pool: Pool[Record] | None = None
        self._init_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        await self.ainitialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and exc_val is not None:
            logger.error(
                "AsyncConnectionPool context manager exiting with exception",
                pool=self._name,
                exc_type=exc_type.__name__,
                exc_val=str(exc_val),
            )
        await self.aclose()

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> AsyncpgConfig:
        return self._config

    @property
    def pool(self) -> Pool[Record]:
        """Access the underlying asyncpg pool.

        Raises
        ------
        PoolNotInitializedError
            If pool has not been initialized via `ainitialize()`.
        """
        if self._pool is None:
            msg = f"Pool {self._name!r} not initialized. Call ainitialize() first."
            raise PoolNotInitializedError(msg)
        return self._pool

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def ainitialize(self) -> None:
        """Create the pool and ping the server once.

        Idempotent. An asyncio lock keeps two concurrent callers from each
        creating a pool and orphaning one of them.
        """
        async with self._init_lock:
            if self._pool is not None:
                return

            pool = await asyncpg.create_pool(**self._config.to_pool_params())
            try:
                async with pool.acquire() as conn:
                    await conn.execute("SELECT 1")
            except BaseException:
                await pool.close()
                raise
            self._pool = pool

            logger.info(
                "AsyncConnectionPool initialized",
                pool=self._name,
                address=self._config.address,
                database=self._config.connection.database,
                min_size=self._config.pool.min_size,
                max_size=self._config.pool.max_size,
            )

    async def aclose(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("AsyncConnectionPool closed", pool=self._name)

    async def ahealth_check(self) -> HealthCheckResult:
        """Check pool health by executing a simple query.

        Returns
        -------
        HealthCheckResult
            Health status with latency and pool statistics.
        """
        address = self._config.address
        if self._pool is None:
            return HealthCheckResult.initializing(address=address, pool_max_size=self._config.pool.max_size)

        try:
            async with Timer(silent=True) as t, self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            latency_s = t.elapsed_seconds
        except Exception as e:
            return HealthCheckResult.unhealthy(
                address=address,
                pool_max_size=self._config.pool.max_size,
                error=str(e),
            )

        return HealthCheckResult.healthy(
            address=address,
            pool_size=self._pool.get_size(),
            pool_max_size=self._pool.get_max_size(),
            latency_s=latency_s,
            pool_idle_size=self._pool.get_idle_size(),
        )

    @asynccontextmanager
    async def aacquire(self) -> AsyncIterator[PoolConnectionProxy[Record]]:
        """Acquire a connection from the pool.

        Yields
        ------
        PoolConnectionProxy[Record]
            A connection proxy that is returned to the pool on exit.
        """
        async with self.pool.acquire() as conn:
            yield conn

    async def aexecute(self, query: str, *args: object, timeout: float | None = None) -> str:
        """Execute a query without returning results.

        Returns
        -------
        str
            Command status string (e.g., "INSERT 0 1").
        """
        async with self.aacquire() as conn:
            return await conn.execute(query, *args, timeout=timeout)

    async def afetch(self, query: str, *args: object, timeout: float | None = None) -> list[Record]:
        """Execute a query and return all rows."""
        async with self.aacquire() as conn:
            return await conn.fetch(query, *args, timeout=timeout)

    async def afetchrow(self, query: str, *args: object, timeout: float | None = None) -> Record | None:
        """Execute a query and return the first row, or None if no rows returned."""
        async with self.aacquire() as conn:
            return await conn.fetchrow(query, *args, timeout=timeout)

    async def afetchval(self, query: str, *args: object, timeout: float | None = None) -> Any:
        """Execute a query and return the first value of the first row."""
        async with self.aacquire() as conn:
            return await conn.fetchval(query, *args, timeout=timeout)
