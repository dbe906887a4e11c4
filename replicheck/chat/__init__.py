from __future__ import annotations

from .consistency import ConsistencyChecker
from .domain import ChatMessage, ComparisonResult
from .exceptions import ChatQueryError, ChatStoreError, ConsistencyCheckError, RowDecodeError, WriteRejectedError
from .routing import DEFAULT_TARGET, KNOWN_TOKENS, TargetResolver, resolve_target
from .store import ChatStore

__all__ = [
    "DEFAULT_TARGET",
    "KNOWN_TOKENS",
    "ChatMessage",
    "ChatQueryError",
    "ChatStore",
    "ChatStoreError",
    "ComparisonResult",
    "ConsistencyCheckError",
    "ConsistencyChecker",
    "RowDecodeError",
    "TargetResolver",
    "WriteRejectedError",
    "resolve_target",
]
