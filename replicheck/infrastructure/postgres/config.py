"""Configuration models for asyncpg connection pools.

- `AsyncpgConfig`: Configuration for a single connection pool
- `HandleSetConfig`: Configuration for the primary + replica + proxy handles
"""

from __future__ import annotations

from typing import Any, Literal, Self
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, SecretStr, computed_field


class AsyncpgConnectionSettings(BaseModel):
    """Connection settings for a PostgreSQL database."""

    model_config = ConfigDict(extra="forbid")

    host: str = Field(default="localhost")
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(default="postgres")
    user: str = Field(default="postgres")
    password: SecretStr | None = Field(default=None)
    sslmode: Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"] = Field(default="disable")


class AsyncpgPoolSettings(BaseModel):
    """Connection pool settings."""

    model_config = ConfigDict(extra="forbid")

    min_size: int = Field(default=1, ge=1, le=100)
    max_size: int = Field(default=10, ge=1, le=200)
    max_inactive_connection_lifetime: float = Field(default=300.0, ge=0.0)
    command_timeout: float = Field(default=60.0, ge=1.0, le=300.0)


class AsyncpgStatementCacheSettings(BaseModel):
    """Statement cache settings for prepared statements.

    Set ``max_size`` to 0 when connecting through a transaction-pooling proxy,
    where a prepared statement may land on a different server connection.
    """

    model_config = ConfigDict(extra="forbid")

    max_size: int = Field(default=256, ge=0, le=1000)
    max_lifetime: int = Field(default=300, ge=0)
    max_cacheable_statement_size: int = Field(default=15360, ge=0)


class AsyncpgServerSettings(BaseModel):
    """PostgreSQL server settings passed to the connection."""

    model_config = ConfigDict(extra="forbid")

    application_name: str = Field(default="replicheck")
    jit: Literal["on", "off"] = Field(default="off")


class AsyncpgConfig(BaseModel):
    """Complete configuration for an asyncpg connection pool.

    Examples
    --------
    >>> config = AsyncpgConfig(
    ...     connection=AsyncpgConnectionSettings(
    ...         host="localhost",
    ...         database="postgres",
    ...         user="postgres",
    ...         password=SecretStr("secret"),
    ...     ),
    ...     pool=AsyncpgPoolSettings(min_size=1, max_size=10),
    ... )
    >>> async with AsyncConnectionPool(config) as pool:
    ...     await pool.afetchval("SELECT COUNT(*) FROM chat")
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    connection: AsyncpgConnectionSettings = Field(default_factory=AsyncpgConnectionSettings)
    pool: AsyncpgPoolSettings = Field(default_factory=AsyncpgPoolSettings)
    statement_cache: AsyncpgStatementCacheSettings = Field(default_factory=AsyncpgStatementCacheSettings)
    server_settings: AsyncpgServerSettings = Field(default_factory=AsyncpgServerSettings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def dsn(self) -> str:
        """Build PostgreSQL DSN from connection settings."""
        password = self.connection.password.get_secret_value() if self.connection.password else ""
        escaped_user = quote_plus(self.connection.user)
        escaped_password = quote_plus(password) if password else ""
        auth = f"{escaped_user}:{escaped_password}@" if escaped_password else f"{escaped_user}@"
        return (
            f"postgresql://{auth}{self.connection.host}:{self.connection.port}/{self.connection.database}"
            f"?sslmode={self.connection.sslmode}"
        )

    @property
    def address(self) -> str:
        """``host:port`` for log lines; never includes credentials."""
        return f"{self.connection.host}:{self.connection.port}"

    def to_pool_params(self) -> dict[str, Any]:
        """Convert config to asyncpg.create_pool() parameters.

        Returns
        -------
        dict[str, Any]
            Parameters for asyncpg.create_pool().
        """
        return {
            "dsn": self.dsn,
            **self.pool.model_dump(),
            "statement_cache_size": self.statement_cache.max_size,
            "max_cached_statement_lifetime": self.statement_cache.max_lifetime,
            "max_cacheable_statement_size": self.statement_cache.max_cacheable_statement_size,
            "server_settings": self.server_settings.model_dump(),
        }

    def for_endpoint(self, host: str, port: int | None = None, *, statement_cache_size: int | None = None) -> Self:
        """Copy this config pointed at another host, keeping database and credentials.

        Replica and proxy endpoints share database, credentials and pool settings
        with the primary; only the host (and usually the port) differs.

        Parameters
        ----------
        host
            Hostname of the other endpoint.
        port
            Optional port override. Defaults to the same port as this config.
        statement_cache_size
            Optional statement cache override (0 disables prepared statement caching).

        Returns
        -------
        Self
            A new config for the endpoint.

        Examples
        --------
        >>> primary = AsyncpgConfig(connection=AsyncpgConnectionSettings(host="pg-primary"))
        >>> replica = primary.for_endpoint("pg-replica", port=5433)
        >>> proxy = primary.for_endpoint("pgcat", port=6432, statement_cache_size=0)
        """
        update: dict[str, Any] = {
            "connection": self.connection.model_copy(
                update={"host": host, "port": port if port is not None else self.connection.port}
            )
        }
        if statement_cache_size is not None:
            update["statement_cache"] = self.statement_cache.model_copy(update={"max_size": statement_cache_size})
        return self.model_copy(update=update)


class HandleSetConfig(BaseModel):
    """Configuration of the three database handles the demo talks to.

    Examples
    --------
    >>> config = HandleSetConfig.with_endpoints(
    ...     primary_cfg,
    ...     replica=("pg-replica", 5432),
    ...     proxy=("pgcat", 6432),
    ... )
    >>> handles = DatabaseHandleSet.from_config(config)
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    primary: AsyncpgConfig
    replica: AsyncpgConfig
    proxy: AsyncpgConfig

    @classmethod
    def with_endpoints(
        cls,
        primary: AsyncpgConfig,
        replica: tuple[str, int],
        proxy: tuple[str, int],
    ) -> Self:
        """Derive replica and proxy configs from the primary.

        Parameters
        ----------
        primary
            Primary database configuration.
        replica
            ``(host, port)`` of the streaming replica.
        proxy
            ``(host, port)`` of the pooling proxy. Its statement cache is disabled.

        Returns
        -------
        Self
            A new handle set config.
        """
        replica_host, replica_port = replica
        proxy_host, proxy_port = proxy
        return cls(
            primary=primary,
            replica=primary.for_endpoint(replica_host, replica_port),
            proxy=primary.for_endpoint(proxy_host, proxy_port, statement_cache_size=0),
        )
