"""Insert and list chat messages on whichever handle a request was routed to."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Final

import asyncpg
from pydantic import ValidationError

from ..core.enums import FailurePolicy
from ..infrastructure.postgres import AsyncpgWrapperError
from ..logger import get_logger
from .domain import ChatMessage
from .exceptions import ChatQueryError, RowDecodeError, WriteRejectedError

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from ..infrastructure.postgres import AsyncConnectionPool

logger: BoundLogger = get_logger(__name__)

CHAT_TABLE: Final = "chat"

INSERT_CHAT_SQL: Final = f"INSERT INTO {CHAT_TABLE} (message) VALUES ($1) RETURNING id, created_at"
LIST_CHATS_SQL: Final = f"SELECT id, message, created_at FROM {CHAT_TABLE} ORDER BY id DESC"
CREATE_CHAT_TABLE_SQL: Final = f"""
    CREATE TABLE IF NOT EXISTS {CHAT_TABLE} (
        id SERIAL PRIMARY KEY,
        message TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

# Errors that mean "this query did not go through" as opposed to a bug here.
QUERY_ERRORS: Final = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    asyncpg.InternalClientError,
    AsyncpgWrapperError,
    OSError,
    asyncio.TimeoutError,
)


class ChatStore:
    """Chat table access against a caller-chosen handle.

    Text is stored exactly as given; this layer does no validation. Under
    `FailurePolicy.BEST_EFFORT` rows that do not decode are skipped when
    listing, under `FailurePolicy.STRICT` they raise `RowDecodeError`.
    """

    __slots__ = ("_policy",)

    def __init__(self, policy: FailurePolicy = FailurePolicy.BEST_EFFORT) -> None:
        self._policy = policy

    @property
    def policy(self) -> FailurePolicy:
        return self._policy

    async def ainsert(self, handle: AsyncConnectionPool, text: str) -> ChatMessage:
        """Insert one message and return it with the database-assigned id and timestamp.

        Raises
        ------
        WriteRejectedError
            The database is read-only (a hot-standby replica).
        ChatQueryError
            Any other failure talking to the database.
        """
        try:
            row = await handle.afetchrow(INSERT_CHAT_SQL, text)
        except asyncpg.exceptions.ReadOnlySQLTransactionError as e:
            logger.warning("Write rejected", target=handle.name, error=str(e))
            raise WriteRejectedError(handle.name, e) from e
        except QUERY_ERRORS as e:
            logger.error("Insert failed", target=handle.name, error=str(e))
            raise ChatQueryError(handle.name, e) from e

        if row is None:
            msg = "INSERT ... RETURNING produced no row"
            raise ChatQueryError(handle.name, RuntimeError(msg))

        message = ChatMessage(id=row["id"], message=text, created_at=row["created_at"])
        logger.info("Chat message inserted", target=handle.name, id=message.id)
        return message

    async def alist(self, handle: AsyncConnectionPool) -> list[ChatMessage]:
        """Return every message on ``handle``, newest (highest id) first.

        Raises
        ------
        ChatQueryError
            The query itself failed.
        RowDecodeError
            A row did not decode and the policy is strict.
        """
        try:
            rows = await handle.afetch(LIST_CHATS_SQL)
        except QUERY_ERRORS as e:
            logger.error("List failed", target=handle.name, error=str(e))
            raise ChatQueryError(handle.name, e) from e

        messages: list[ChatMessage] = []
        for row in rows:
            try:
                messages.append(ChatMessage.model_validate(dict(row)))
            except ValidationError as e:
                if self._policy is FailurePolicy.STRICT:
                    raise RowDecodeError(handle.name, row, e) from e
                logger.warning("Skipping undecodable chat row", target=handle.name, row=dict(row))
        return messages

    async def aensure_schema(self, handle: AsyncConnectionPool) -> None:
        """Create the chat table if it is missing. Run against the primary only."""
        await handle.aexecute(CREATE_CHAT_TABLE_SQL)
        logger.info("Chat table ensured", target=handle.name)
