from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..chat.domain import ComparisonResult
from ..core.enums import HealthStatus, Target


class ChatCreateRequest(BaseModel):
    """Body of ``POST /api/chats``. Missing or null fields are empty strings."""

    model_config = ConfigDict(extra="ignore")

    message: str = Field(default="", description="Message text, stored verbatim")
    target: str = Field(default="", description="master, replica or pgcat; anything else means master")

    @field_validator("message", "target", mode="before")
    @classmethod
    def null_is_empty(cls, value: object) -> object:
        return "" if value is None else value


class ErrorResponse(BaseModel):
    error: str


class CompareResponse(BaseModel):
    """Counts in fixed order: primary, replica, proxy."""

    count1: int
    count2: int
    count3: int
    match: bool

    @classmethod
    def from_result(cls, result: ComparisonResult) -> Self:
        return cls(
            count1=result.count_for(Target.PRIMARY),
            count2=result.count_for(Target.REPLICA),
            count3=result.count_for(Target.PROXY),
            match=result.match,
        )


class HandleHealth(BaseModel):
    status: HealthStatus
    address: str
    pool_size: int
    pool_max_size: int
    pool_idle_size: int
    pool_utilization_pct: float
    latency_s: float | None = None
    message: str | None = None


class HealthResponse(BaseModel):
    status: HealthStatus
    handles: dict[Target, HandleHealth]
