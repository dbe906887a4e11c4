from __future__ import annotations


class ChatStoreError(Exception):
    """Base error for chat reads, writes and comparisons."""


class ChatQueryError(ChatStoreError):
    """A query against one handle failed (connection lost, relation missing, ...).

    The message is the database driver's message, unchanged.
    """

    def __init__(self, target: str, cause: BaseException) -> None:
        self.target = target
        self.cause = cause
        super().__init__(str(cause))


class WriteRejectedError(ChatQueryError):
    """The database refused the insert, e.g. a hot-standby replica."""


class RowDecodeError(ChatStoreError):
    """A row could not be turned into a `ChatMessage`."""

    def __init__(self, target: str, row: object, cause: BaseException) -> None:
        self.target = target
        self.row = row
        self.cause = cause
        super().__init__(f"Undecodable chat row from {target}: {cause}")


class ConsistencyCheckError(ChatStoreError):
    """A count query failed while comparing handles in strict mode."""

    def __init__(self, target: str, cause: BaseException) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"Count on {target} failed: {cause}")
