from __future__ import annotations

from .app import attach_services, create_app

__all__ = ["attach_services", "create_app"]
