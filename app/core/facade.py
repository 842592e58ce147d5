from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from app.core.aggregator import StatAggregator
from app.core.bridges import BridgeRegistry
from app.core.commands import CommandDispatcher, RedisCommandChannel
from app.core.logs import (
    ActivityReader,
    Clock,
    LogCursor,
    PagedReader,
    PagedSource,
    now_ms,
    read_feed,
)
from app.core.redis import RedisManager
from app.settings import Settings


class QueryFacade:
    """Entry point for the HTTP and push layers."""

    def __init__(
        self,
        registry: BridgeRegistry,
        aggregator: StatAggregator,
        activity: ActivityReader,
        queue: PagedReader,
        errors: PagedReader,
        dispatcher: CommandDispatcher,
        about: Optional[Dict[str, Any]] = None,
        clock: Clock = now_ms,
    ) -> None:
        self.registry = registry
        self.aggregator = aggregator
        self._activity = activity
        self._queue = queue
        self._errors = errors
        self._dispatcher = dispatcher
        self._about = dict(about or {})
        self._clock = clock

    async def snapshot(self) -> Dict[str, Any]:
        return await self.aggregator.snapshot(self.registry)

    async def updates(self) -> Dict[str, Any]:
        return await self.aggregator.updates(self.registry)

    async def activity(self, cursor: LogCursor) -> Dict[str, Any]:
        return await self._activity.read(cursor)

    async def bridge_log(self, name: str, cursor: LogCursor) -> Dict[str, Any]:
        bridge = self.registry.get(name) if name else None
        if bridge is None:
            return {}
        return await read_feed(bridge.get_logs, cursor, self._clock)

    async def queue(self, page: Any = None, size: Any = None) -> Dict[str, Any]:
        return await self._queue.page(page, size)

    async def errors(self, page: Any = None, size: Any = None) -> Dict[str, Any]:
        return await self._errors.page(page, size)

    async def task(self, op: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await self._dispatcher.execute(op, params)

    def about(self) -> Dict[str, Any]:
        return dict(self._about)

    @classmethod
    def from_redis(cls, rm: RedisManager, registry: BridgeRegistry, s: Settings) -> "QueryFacade":
        paging = dict(
            default_size=s.BRIDGEMON_PAGE_SIZE,
            max_size=s.BRIDGEMON_PAGE_SIZE_MAX,
            window=s.BRIDGEMON_PAGER_WINDOW,
        )
        return cls(
            registry=registry,
            aggregator=StatAggregator(rm.get_count, timeout=s.BRIDGEMON_POLL_TIMEOUT_SEC),
            activity=ActivityReader(rm),
            queue=PagedReader(PagedSource(rm.queue_length, rm.get_queue), **paging),
            errors=PagedReader(PagedSource(rm.error_count, rm.get_errors), **paging),
            dispatcher=CommandDispatcher(
                RedisCommandChannel(rm, timeout=s.BRIDGEMON_COMMAND_TIMEOUT_SEC)
            ),
            about={
                "title": s.BRIDGEMON_ABOUT_TITLE,
                "version": s.BRIDGEMON_BUILD_VERSION,
                "author": s.BRIDGEMON_ABOUT_AUTHOR,
                "license": s.BRIDGEMON_ABOUT_LICENSE,
            },
        )
