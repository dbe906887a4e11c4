"""Compare chat row counts across all handles.

Counts are taken concurrently with no shared snapshot, so a comparison made
while inserts are replicating can legitimately disagree. That disagreement
is what the demo page displays as "not in sync".
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Final

from ..core.enums import FailurePolicy, Target
from ..logger import get_logger
from .domain import ComparisonResult
from .exceptions import ConsistencyCheckError
from .store import CHAT_TABLE

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from ..infrastructure.postgres import AsyncConnectionPool, DatabaseHandleSet

logger: BoundLogger = get_logger(__name__)

COUNT_CHATS_SQL: Final = f"SELECT COUNT(*) FROM {CHAT_TABLE}"


class ConsistencyChecker:
    """Count rows on every handle and report whether the counts are equal."""

    __slots__ = ("_handles", "_policy")

    def __init__(self, handles: DatabaseHandleSet, policy: FailurePolicy = FailurePolicy.BEST_EFFORT) -> None:
        self._handles = handles
        self._policy = policy

    async def _acount(self, target: Target, handle: AsyncConnectionPool) -> int:
        try:
            count = await handle.afetchval(COUNT_CHATS_SQL)
        except Exception as e:
            raise ConsistencyCheckError(target, e) from e
        return int(count or 0)

    async def acompare(self) -> ComparisonResult:
        """Return the count on each handle (primary, replica, proxy) and whether they match.

        Under `FailurePolicy.BEST_EFFORT` a handle whose count fails is reported
        as 0 and listed in ``failed``; this never raises. Under
        `FailurePolicy.STRICT` the first failure (in handle order) is raised as
        `ConsistencyCheckError`.
        """
        handles = list(self._handles.items())
        results = await asyncio.gather(
            *(self._acount(target, handle) for target, handle in handles),
            return_exceptions=True,
        )

        counts: dict[Target, int] = {}
        failed: list[Target] = []
        for (target, _), result in zip(handles, results, strict=True):
            if isinstance(result, ConsistencyCheckError):
                if self._policy is FailurePolicy.STRICT:
                    raise result
                logger.warning("Count failed, reporting 0", target=target, error=str(result.cause))
                counts[target] = 0
                failed.append(target)
            elif isinstance(result, BaseException):
                raise result
            else:
                counts[target] = result

        comparison = ComparisonResult(counts=counts, failed=tuple(failed))
        logger.debug("Compared chat counts", counts=dict(counts), match=comparison.match)
        return comparison
