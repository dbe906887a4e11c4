"""Process settings and the TOML database topology.

Server settings come from the environment (``REPLICHECK_*``); the database
topology comes from a TOML file::

    [master]
    host = "localhost"
    port = 5432
    user = "postgres"
    password = "postgres"
    database = "postgres"

    [[replica]]
    host = "localhost"
    port = 5433

    [pgcat]
    host = "localhost"
    port = 6432

Replica and pgcat reuse the master's user, password and database.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .infrastructure.postgres import (
    AsyncpgConfig,
    AsyncpgConnectionSettings,
    AsyncpgPoolSettings,
    AsyncpgServerSettings,
    HandleSetConfig,
)


class ConfigurationError(Exception):
    """The topology file is missing or invalid. Fatal at startup."""


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REPLICHECK_",
        extra="ignore",
        frozen=True,
    )

    host: str = Field(default="0.0.0.0", description="Interface the web server binds to")
    port: int = Field(default=8080, ge=1, le=65535, description="Port the web server listens on")
    config_path: Path = Field(default=Path("config.toml"), description="Database topology file")
    application_name: str = Field(default="replicheck", description="application_name reported to PostgreSQL")


class EndpointSettings(BaseModel):
    """One ``[master]`` / ``[[replica]]`` / ``[pgcat]`` table."""

    model_config = ConfigDict(extra="ignore")

    host: str = Field(default="localhost")
    port: int = Field(default=5432, ge=1, le=65535)
    user: str = Field(default="postgres")
    password: SecretStr | None = Field(default=None)
    database: str = Field(default="postgres")


class TopologyConfig(BaseModel):
    """The whole TOML file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    master: EndpointSettings
    replica: list[EndpointSettings] = Field(min_length=1)
    pgcat: EndpointSettings
    pool: AsyncpgPoolSettings = Field(default_factory=AsyncpgPoolSettings)
    bootstrap_schema: bool = Field(default=False, description="Create the chat table on the primary at startup")

    @classmethod
    def from_toml(cls, path: Path) -> Self:
        """Load and validate the topology file.

        Raises
        ------
        ConfigurationError
            If the file cannot be read, is not valid TOML, or fails validation.
        """
        try:
            with path.open("rb") as f:
                raw = tomllib.load(f)
        except OSError as e:
            msg = f"Failed to read {path}: {e}"
            raise ConfigurationError(msg) from e
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {path}: {e}"
            raise ConfigurationError(msg) from e

        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            msg = f"Invalid database topology in {path}: {e}"
            raise ConfigurationError(msg) from e

    def to_handle_set_config(self, application_name: str = "replicheck") -> HandleSetConfig:
        """Build pool configs; only the first replica is used."""
        primary = AsyncpgConfig(
            connection=AsyncpgConnectionSettings(
                host=self.master.host,
                port=self.master.port,
                database=self.master.database,
                user=self.master.user,
                password=self.master.password,
            ),
            pool=self.pool,
            server_settings=AsyncpgServerSettings(application_name=application_name),
        )
        replica = self.replica[0]
        return HandleSetConfig.with_endpoints(
            primary,
            replica=(replica.host, replica.port),
            proxy=(self.pgcat.host, self.pgcat.port),
        )
