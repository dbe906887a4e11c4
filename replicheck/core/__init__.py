"""Core module exports."""

from __future__ import annotations

from .enums import FailurePolicy, HealthStatus, Target

__all__ = [
    "FailurePolicy",
    "HealthStatus",
    "Target",
]
