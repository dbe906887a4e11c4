"""Shared fixtures for unit tests: mocked pools wired into a real `DatabaseHandleSet`."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from replicheck.core.enums import Target
from replicheck.infrastructure.postgres import (
    AsyncConnectionPool,
    AsyncpgConfig,
    AsyncpgConnectionSettings,
    DatabaseHandleSet,
)

PoolFactory: TypeAlias = Callable[[Target], MagicMock]
RowFactory: TypeAlias = Callable[..., dict[str, object]]

CREATED_AT = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)

_PORTS = {Target.PRIMARY: 5432, Target.REPLICA: 5433, Target.PROXY: 6432}


def _chat_row(id_: int, message: str | None = "hello", created_at: datetime | None = CREATED_AT) -> dict[str, object]:
    """A row shaped like ``SELECT id, message, created_at FROM chat``."""
    return {"id": id_, "message": message, "created_at": created_at}


@pytest.fixture
def chat_row() -> RowFactory:
    return _chat_row


@pytest.fixture
def created_at() -> datetime:
    return CREATED_AT


@pytest.fixture
def make_pool() -> PoolFactory:
    """Build a mocked `AsyncConnectionPool` for one target."""

    def _make(target: Target) -> MagicMock:
        pool = MagicMock(spec=AsyncConnectionPool)
        pool.name = str(target)
        pool.config = AsyncpgConfig(
            connection=AsyncpgConnectionSettings(host=f"{target}.db", port=_PORTS[target]),
        )
        pool.ainitialize = AsyncMock(return_value=None)
        pool.aclose = AsyncMock(return_value=None)
        pool.aexecute = AsyncMock(return_value="CREATE TABLE")
        pool.afetch = AsyncMock(return_value=[])
        pool.afetchrow = AsyncMock(return_value=None)
        pool.afetchval = AsyncMock(return_value=0)
        pool.ahealth_check = AsyncMock()
        return pool

    return _make


@pytest.fixture
def primary_pool(make_pool: PoolFactory) -> MagicMock:
    return make_pool(Target.PRIMARY)


@pytest.fixture
def replica_pool(make_pool: PoolFactory) -> MagicMock:
    return make_pool(Target.REPLICA)


@pytest.fixture
def proxy_pool(make_pool: PoolFactory) -> MagicMock:
    return make_pool(Target.PROXY)


@pytest.fixture
def handles(primary_pool: MagicMock, replica_pool: MagicMock, proxy_pool: MagicMock) -> DatabaseHandleSet:
    return DatabaseHandleSet(primary=primary_pool, replica=replica_pool, proxy=proxy_pool)
