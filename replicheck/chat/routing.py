"""Map request-supplied target tokens to database handles.

Tokens are matched exactly and case-sensitively. Anything not in
`KNOWN_TOKENS` (including an empty or missing token) goes to
`DEFAULT_TARGET`, so a page that sends an unexpected value still works
against the primary instead of failing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from ..core.enums import Target
from ..logger import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..infrastructure.postgres import AsyncConnectionPool, DatabaseHandleSet

logger = get_logger(__name__)

DEFAULT_TARGET: Final = Target.PRIMARY

KNOWN_TOKENS: Final[Mapping[str, Target]] = {
    "master": Target.PRIMARY,
    "primary": Target.PRIMARY,
    "replica": Target.REPLICA,
    "pgcat": Target.PROXY,
    "proxy": Target.PROXY,
}


def resolve_target(token: str | None) -> Target:
    """Return the target named by ``token``, or `DEFAULT_TARGET`. Never raises."""
    if token and token in KNOWN_TOKENS:
        return KNOWN_TOKENS[token]

    if token:
        logger.debug("Unknown target token, using default", token=token, target=DEFAULT_TARGET)
    return DEFAULT_TARGET


class TargetResolver:
    """Resolve target tokens straight to handles of one `DatabaseHandleSet`."""

    __slots__ = ("_handles",)

    def __init__(self, handles: DatabaseHandleSet) -> None:
        self._handles = handles

    def resolve(self, token: str | None) -> Target:
        return resolve_target(token)

    def handle_for(self, token: str | None) -> tuple[Target, AsyncConnectionPool]:
        target = resolve_target(token)
        return target, self._handles.get(target)
