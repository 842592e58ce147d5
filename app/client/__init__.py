# app/client/__init__.py
"""Bridge Monitor Python SDK."""

from __future__ import annotations

from .monitor_client import MonitorClient

__all__ = ["MonitorClient"]
