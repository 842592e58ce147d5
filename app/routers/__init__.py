# app/routers/__init__.py
"""
FastAPI routers for Bridge Monitor.

Importing this module does not create an application instance.
"""

from __future__ import annotations

from .system import router as system_router
from .ui import router as ui_router

__all__ = [
    "system_router",
    "ui_router",
]
