"""PostgreSQL infrastructure with asyncpg.

This module provides:

- `AsyncConnectionPool`: Single connection pool for one database endpoint
- `DatabaseHandleSet`: Primary, replica and proxy pools addressed by `Target`
- `HandleSetConfig`: Configuration for the three endpoints

Usage
-----
::

    config = HandleSetConfig.with_endpoints(primary_cfg, replica=("pg-replica", 5432), proxy=("pgcat", 6432))
    async with DatabaseHandleSet.from_config(config) as handles:
        await handles.primary.aexecute("INSERT ...")
        await handles.replica.afetchval("SELECT COUNT(*) FROM chat")
"""

from .config import (
    AsyncpgConfig,
    AsyncpgConnectionSettings,
    AsyncpgPoolSettings,
    AsyncpgServerSettings,
    AsyncpgStatementCacheSettings,
    HandleSetConfig,
)
from .exceptions import AsyncpgWrapperError, HandleSetInitializationError, PoolNotInitializedError
from .handles import DatabaseHandleSet
from .health import HandleSetHealthResult, HealthCheckResult
from .pool import AsyncConnectionPool

__all__ = [
    "AsyncConnectionPool",
    "AsyncpgConfig",
    "AsyncpgConnectionSettings",
    "AsyncpgPoolSettings",
    "AsyncpgServerSettings",
    "AsyncpgStatementCacheSettings",
    "AsyncpgWrapperError",
    "DatabaseHandleSet",
    "HandleSetConfig",
    "HandleSetHealthResult",
    "HandleSetInitializationError",
    "HealthCheckResult",
    "PoolNotInitializedError",
]
