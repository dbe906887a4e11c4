"""JSON endpoints used by the demo page."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..chat import ChatMessage, ChatStore, ConsistencyChecker, TargetResolver
from ..core.enums import HealthStatus
from ..infrastructure.postgres import DatabaseHandleSet
from ..logger import bind_context, get_logger
from .dependencies import get_checker, get_handles, get_resolver, get_store
from .schemas import ChatCreateRequest, CompareResponse, ErrorResponse, HandleHealth, HealthResponse

logger = get_logger(__name__)

router = APIRouter(tags=["Chat"])

_ERROR_RESPONSES = {500: {"model": ErrorResponse}}


@router.get("/chats", response_model=list[ChatMessage], responses=_ERROR_RESPONSES)
async def list_chats(
    resolver: Annotated[TargetResolver, Depends(get_resolver)],
    store: Annotated[ChatStore, Depends(get_store)],
    db: Annotated[str, Query(description="master, replica or pgcat")] = "master",
) -> list[ChatMessage]:
    """Every message on the chosen database, newest first."""
    target, handle = resolver.handle_for(db)
    bind_context(target=target)
    return await store.alist(handle)


@router.post("/chats", response_model=ChatMessage, responses=_ERROR_RESPONSES)
async def create_chat(
    body: ChatCreateRequest,
    resolver: Annotated[TargetResolver, Depends(get_resolver)],
    store: Annotated[ChatStore, Depends(get_store)],
) -> ChatMessage:
    """Insert on the chosen database. Inserting on the replica is expected to fail."""
    target, handle = resolver.handle_for(body.target)
    bind_context(target=target)
    return await store.ainsert(handle, body.message)


@router.get("/compare", response_model=CompareResponse)
async def compare(checker: Annotated[ConsistencyChecker, Depends(get_checker)]) -> CompareResponse:
    """Row counts of primary, replica and proxy, and whether they agree."""
    return CompareResponse.from_result(await checker.acompare())


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health(handles: Annotated[DatabaseHandleSet, Depends(get_handles)]) -> JSONResponse:
    result = await handles.ahealth_check()
    body = HealthResponse(
        status=result.status,
        handles={
            target: HandleHealth(
                status=check.status,
                address=check.address,
                pool_size=check.pool_size,
                pool_max_size=check.pool_max_size,
                pool_idle_size=check.pool_idle_size,
                pool_utilization_pct=check.pool_utilization_pct,
                latency_s=check.latency_s,
                message=check.message,
            )
            for target, check in result.handles.items()
        },
    )
    status_code = 503 if result.status == HealthStatus.UNHEALTHY else 200
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
