"""FastAPI dependencies reading the services stored on ``app.state`` at startup."""

from __future__ import annotations

from fastapi import Request

from ..chat import ChatStore, ConsistencyChecker, TargetResolver
from ..infrastructure.postgres import DatabaseHandleSet


def get_handles(request: Request) -> DatabaseHandleSet:
    return request.app.state.handles


def get_resolver(request: Request) -> TargetResolver:
    return request.app.state.resolver


def get_store(request: Request) -> ChatStore:
    return request.app.state.store


def get_checker(request: Request) -> ConsistencyChecker:
    return request.app.state.checker
