"""FastAPI application: the demo page, the JSON API and the handle lifecycle."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse

from .. import __version__
from ..chat import ChatStore, ChatStoreError, ConsistencyChecker, TargetResolver
from ..core.enums import FailurePolicy, Target
from ..infrastructure.postgres import DatabaseHandleSet
from ..logger import bind_context, clear_context, get_logger
from ..settings import ServerSettings, TopologyConfig
from .page import INDEX_HTML
from .routes import router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from starlette.responses import Response

logger = get_logger(__name__)


def attach_services(
    app: FastAPI,
    handles: DatabaseHandleSet,
    policy: FailurePolicy = FailurePolicy.BEST_EFFORT,
) -> None:
    """Store the handle set and the services built on it on ``app.state``."""
    app.state.handles = handles
    app.state.resolver = TargetResolver(handles)
    app.state.store = ChatStore(policy)
    app.state.checker = ConsistencyChecker(handles, policy)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect every database before serving; close them on shutdown.

    Any topology or connection error propagates and the server does not start.
    Handles attached beforehand (tests) are left alone.
    """
    if getattr(app.state, "handles", None) is not None:
        yield
        return

    settings: ServerSettings = app.state.settings
    topology = TopologyConfig.from_toml(settings.config_path)
    handles = DatabaseHandleSet.from_config(topology.to_handle_set_config(settings.application_name))

    async with handles:
        for target, handle in handles.items():
            logger.info("Database endpoint", target=target, address=handle.config.address)

        attach_services(app, handles)
        if topology.bootstrap_schema:
            await app.state.store.aensure_schema(handles.get(Target.PRIMARY))

        logger.info("Server starting", host=settings.host, port=settings.port)
        yield
        logger.info("Server shutting down")
        app.state.handles = None


async def chat_store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    detail = "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in errors) or str(exc)
    return JSONResponse(status_code=400, content={"error": detail})


def create_app(
    settings: ServerSettings | None = None,
    handles: DatabaseHandleSet | None = None,
) -> FastAPI:
    """Build the application.

    Parameters
    ----------
    settings
        Server settings; read from the environment when omitted.
    handles
        Pre-built handle set. When given, startup does not read the topology
        file or open connections.
    """
    app = FastAPI(
        title="PostgreSQL Replication Demo",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or ServerSettings()
    app.state.handles = None
    if handles is not None:
        attach_services(app, handles)

    app.add_exception_handler(ChatStoreError, chat_store_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        clear_context()
        bind_context(method=request.method, path=request.url.path)
        return await call_next(request)

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index() -> str:
        return INDEX_HTML

    app.include_router(router, prefix="/api")
    return app
