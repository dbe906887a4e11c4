from __future__ import annotations


class AsyncpgWrapperError(Exception):
    """Base error for the asyncpg pool wrappers."""


class PoolNotInitializedError(AsyncpgWrapperError):
    """Raised when a pool is used before ``ainitialize()``."""


class HandleSetInitializationError(AsyncpgWrapperError):
    """Raised when any handle fails to connect or answer a ping at startup."""

    def __init__(self, target: str, host: str, port: int, cause: BaseException) -> None:
        self.target = target
        self.host = host
        self.port = port
        self.cause = cause
        super().__init__(f"{target} database at {host}:{port} is unreachable: {cause}")
