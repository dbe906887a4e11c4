"""Fixtures for chat routing tests against real PostgreSQL streaming replication.

A primary and a hot-standby replica are started with testcontainers and joined
over a private Docker network; the replica is seeded with ``pg_basebackup -R``.
No PgCat image is started: the proxy handle points at the primary, which is
what a pooling proxy in front of the primary looks like from the client side.
"""

from __future__ import annotations

import asyncio
import os
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

import pytest
import pytest_asyncio
from docker import DockerClient, from_env  # type: ignore[import-untyped]
from docker.errors import APIError, DockerException, NotFound  # type: ignore[import-untyped]
from pydantic import SecretStr
from testcontainers.postgres import PostgresContainer  # type: ignore[import-untyped]

from replicheck.chat.store import CHAT_TABLE, CREATE_CHAT_TABLE_SQL
from replicheck.infrastructure.postgres import (
    AsyncConnectionPool,
    AsyncpgConfig,
    AsyncpgConnectionSettings,
    AsyncpgPoolSettings,
    DatabaseHandleSet,
    HandleSetConfig,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

    from docker.models.networks import Network  # type: ignore[import-untyped]

_NETWORK_NAME = "replicheck-replication-test-network"
_IMAGE = "postgres:17-alpine"


def pytest_configure(config: pytest.Config) -> None:  # noqa: ARG001
    """Point testcontainers at a local Docker socket when DOCKER_HOST is unset."""
    if not os.environ.get("DOCKER_HOST"):
        for socket_path in (Path("/var/run/docker.sock"), Path.home() / ".docker" / "run" / "docker.sock"):
            if socket_path.exists():
                os.environ["DOCKER_HOST"] = f"unix://{socket_path}"
                os.environ["TESTCONTAINERS_DOCKER_SOCKET_OVERRIDE"] = str(socket_path)
                break

    # Ryuk (testcontainers cleanup daemon) has known issues on macOS/Docker Desktop
    if sys.platform == "darwin" and not os.environ.get("TESTCONTAINERS_RYUK_DISABLED"):
        os.environ["TESTCONTAINERS_RYUK_DISABLED"] = "true"


def _is_docker_available() -> bool:
    try:
        from_env().ping()
    except DockerException:
        return False
    else:
        return True


def _get_or_create_network(name: str = _NETWORK_NAME) -> Network:
    client = DockerClient.from_env()
    try:
        return client.networks.get(name)
    except NotFound:
        return client.networks.create(name, driver="bridge")


def _cleanup_network(name: str = _NETWORK_NAME) -> None:
    try:
        network = DockerClient.from_env().networks.get(name)
        network.reload()
        if not network.attrs.get("Containers"):
            network.remove()
    except (NotFound, APIError):
        pass


def _internal_ip(container: PostgresContainer, network_name: str = _NETWORK_NAME) -> str:
    wrapped = container.get_wrapped_container()
    wrapped.reload()
    networks = wrapped.attrs["NetworkSettings"]["Networks"]
    if network_name not in networks:
        msg = f"Container not connected to network {network_name}"
        raise RuntimeError(msg)
    ip_address: str = networks[network_name]["IPAddress"]
    return ip_address


class PostgresPrimaryContainer(PostgresContainer):  # type: ignore[misc]
    """Primary with WAL streaming enabled and a ``replicator`` role."""

    def __init__(self, network_name: str = _NETWORK_NAME, **kwargs: Any) -> None:
        super().__init__(image=_IMAGE, driver="asyncpg", **kwargs)  # type: ignore[misc]
        self._network_name = network_name
        self.with_command(  # type: ignore[misc]
            [
                "postgres",
                "-c", "wal_level=replica",
                "-c", "max_wal_senders=5",
                "-c", "max_replication_slots=5",
                "-c", "hot_standby=on",
                "-c", "wal_sender_timeout=5s",
            ]
        )  # fmt: skip

    def start(self) -> Self:
        result: Self = super().start()  # type: ignore[misc]
        _get_or_create_network(self._network_name).connect(self.get_wrapped_container())
        return result

    def create_replication_user(self) -> None:
        """Allow replication connections and create the role that makes them."""
        script = """
            set -e
            PG_HBA="/var/lib/postgresql/data/pg_hba.conf"
            grep -q "host replication replicator" "$PG_HBA" || {
                echo "host replication replicator 0.0.0.0/0 md5" >> "$PG_HBA"
                echo "host replication replicator ::/0 md5" >> "$PG_HBA"
            }
            psql -v ON_ERROR_STOP=1 -U "$POSTGRES_USER" -d "$POSTGRES_DB" -c \
                "CREATE ROLE replicator WITH REPLICATION LOGIN PASSWORD 'replica_pass'"
            psql -U "$POSTGRES_USER" -d "$POSTGRES_DB" -c "SELECT pg_reload_conf()"
        """
        exec_result = self.get_wrapped_container().exec_run(["bash", "-c", script])
        if exec_result.exit_code != 0:
            msg = f"Failed to configure replication on primary: {exec_result.output.decode()}"
            raise RuntimeError(msg)


class PostgresReplicaContainer(PostgresContainer):  # type: ignore[misc]
    """Hot-standby replica seeded from the primary with pg_basebackup.

    PID 1 is a keep-alive shell so postgres can be started by hand after the
    data directory has been replaced.
    """

    def __init__(self, primary: PostgresPrimaryContainer, network_name: str = _NETWORK_NAME, **kwargs: Any) -> None:
        super().__init__(image=_IMAGE, driver="asyncpg", **kwargs)  # type: ignore[misc]
        self.primary = primary
        self._network_name = network_name
        self.with_command(["sh", "-c", "while true; do sleep 86400; done"])  # type: ignore[misc]

    def _connect(self) -> None:
        """Postgres is not running until `configure_replication` starts it."""

    def start(self) -> Self:
        result: Self = super().start()  # type: ignore[misc]
        _get_or_create_network(self._network_name).connect(self.get_wrapped_container())
        return result

    def configure_replication(self) -> None:
        primary_ip = _internal_ip(self.primary, self._network_name)
        script = f"""
            set -e
            mkdir -p /var/lib/postgresql/data
            rm -rf /var/lib/postgresql/data/*
            PGPASSWORD=replica_pass pg_basebackup -h {primary_ip} -p 5432 -U replicator \\
                -D /var/lib/postgresql/data -Fp -Xs -R
            chown -R postgres:postgres /var/lib/postgresql/data
            chmod 700 /var/lib/postgresql/data
            su postgres -c 'pg_ctl start -D /var/lib/postgresql/data -l /var/lib/postgresql/logfile'
            for i in $(seq 1 60); do
                pg_isready -U postgres > /dev/null 2>&1 && exit 0
                sleep 0.5
            done
            cat /var/lib/postgresql/logfile >&2
            exit 1
        """
        exec_result = self.get_wrapped_container().exec_run(["bash", "-c", script])
        if exec_result.exit_code != 0:
            msg = f"Replication setup failed: {exec_result.output.decode()}"
            raise RuntimeError(msg)


def _pool_config(container: PostgresContainer) -> AsyncpgConfig:
    return AsyncpgConfig(
        connection=AsyncpgConnectionSettings(
            host=container.get_container_host_ip(),
            port=int(container.get_exposed_port(5432)),
            database=container.dbname,
            user=container.username,
            password=SecretStr(container.password),
        ),
        pool=AsyncpgPoolSettings(min_size=1, max_size=5),
    )


async def wait_for_replication(
    primary: AsyncConnectionPool,
    replica: AsyncConnectionPool,
    timeout: float = 10.0,
) -> None:
    """Poll until the replica has replayed everything the primary has written.

    Raises
    ------
    TimeoutError
        If the replica does not catch up within ``timeout`` seconds.
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        primary_lsn = await primary.afetchval("SELECT pg_current_wal_lsn()")
        caught_up = await replica.afetchval("SELECT pg_last_wal_replay_lsn() >= $1::pg_lsn", primary_lsn)
        if caught_up:
            return
        await asyncio.sleep(0.1)

    msg = f"Replica did not catch up within {timeout}s"
    raise TimeoutError(msg)


@pytest.fixture(scope="session")
def primary_container() -> Iterator[PostgresPrimaryContainer]:
    if not _is_docker_available():
        pytest.skip("Docker daemon not accessible")

    container = PostgresPrimaryContainer()
    container.start()
    try:
        container.create_replication_user()
        yield container
    finally:
        container.stop()
        _cleanup_network()


@pytest.fixture(scope="session")
def replica_container(primary_container: PostgresPrimaryContainer) -> Iterator[PostgresReplicaContainer]:
    container = PostgresReplicaContainer(primary_container)
    container.start()
    try:
        container.configure_replication()
        yield container
    finally:
        container.stop()


@pytest_asyncio.fixture
async def handle_set(
    primary_container: PostgresPrimaryContainer,
    replica_container: PostgresReplicaContainer,
) -> AsyncIterator[DatabaseHandleSet]:
    """Connected handles with an empty ``chat`` table replicated to the standby."""
    primary_config = _pool_config(primary_container)
    config = HandleSetConfig(
        primary=primary_config,
        replica=_pool_config(replica_container),
        proxy=primary_config.for_endpoint(
            primary_config.connection.host, primary_config.connection.port, statement_cache_size=0
        ),
    )

    async with DatabaseHandleSet.from_config(config) as handles:
        await handles.primary.aexecute(CREATE_CHAT_TABLE_SQL)
        await handles.primary.aexecute(f"TRUNCATE TABLE {CHAT_TABLE} RESTART IDENTITY")
        await wait_for_replication(handles.primary, handles.replica)
        yield handles
        if handles.replica.is_initialized:
            await handles.replica.aexecute("SELECT pg_wal_replay_resume()")


@pytest.fixture
def replicated(handle_set: DatabaseHandleSet) -> Callable[[], Awaitable[None]]:
    """Awaitable that returns once the replica has replayed the primary's WAL."""

    async def _await() -> None:
        await wait_for_replication(handle_set.primary, handle_set.replica)

    return _await
