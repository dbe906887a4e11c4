"""PostgreSQL replication demo: route chat reads/writes per target and compare row counts."""

from __future__ import annotations

__version__ = "0.1.0"
