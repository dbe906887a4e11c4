from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..core.enums import Target


class ChatMessage(BaseModel):
    """One row of the ``chat`` table as read from a single database.

    ``id`` is assigned by whichever database accepted the insert, so two
    databases can hand out the same id for different messages.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(description="Identifier assigned by the target database")
    message: str = Field(description="Message text, stored verbatim")
    created_at: datetime = Field(description="Insert time assigned by the database")


class ComparisonResult(BaseModel):
    """Row counts of every handle at one moment, and whether they agree.

    A handle whose count query failed is listed in ``failed`` and counts as 0.
    """

    model_config = ConfigDict(frozen=True)

    counts: dict[Target, int]
    failed: tuple[Target, ...] = Field(default_factory=tuple)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def match(self) -> bool:
        return len(set(self.counts.values())) <= 1

    def count_for(self, target: Target) -> int:
        return self.counts.get(target, 0)
