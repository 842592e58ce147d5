# app/core/__init__.py
"""
Core of Bridge Monitor.

This subpackage groups logging, Redis access, security helpers, and the
aggregation, pagination, log-reading and command-dispatch logic behind
the query facade.
"""

from __future__ import annotations

from .aggregator import BridgeResult, StatAggregator
from .bridges import BridgeHandle, BridgeRegistry, RedisBridge, load_registry
from .commands import CommandDispatcher, RedisCommandChannel
from .facade import QueryFacade
from .logging import get_logger, setup_logging
from .logs import ActivityReader, CursorBook, LogCursor, PagedReader, PagedSource, read_feed
from .paginator import paginate
from .redis import RedisManager
from .security import check_rate_limit, get_redis_manager, validate_api_key

__all__ = [
    # logging
    "get_logger",
    "setup_logging",
    # redis
    "RedisManager",
    # security
    "validate_api_key",
    "check_rate_limit",
    "get_redis_manager",
    # bridges
    "BridgeHandle",
    "BridgeRegistry",
    "RedisBridge",
    "load_registry",
    # aggregation
    "BridgeResult",
    "StatAggregator",
    # pagination & logs
    "paginate",
    "ActivityReader",
    "CursorBook",
    "LogCursor",
    "PagedReader",
    "PagedSource",
    "read_feed",
    # commands
    "CommandDispatcher",
    "RedisCommandChannel",
    # facade
    "QueryFacade",
]
