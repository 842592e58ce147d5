from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from app.core.logging import get_logger
from app.core.paginator import paginate
from app.models import LogEntry, PageDescriptor

log = get_logger("bridge-monitor.logs")

Clock = Callable[[], float]
LogFetch = Callable[[Optional[float]], Awaitable[List[LogEntry]]]


def now_ms() -> float:
    return time.time() * 1000


@dataclass
class LogCursor:
    """
    How far one client has read a single log feed: the newest timestamp
    returned so far and how many entries carrying exactly that timestamp
    were returned. Feeds are fetched inclusively from ``since`` so entries
    stamped in the same millisecond as the last read one are not lost.
    """

    since: Optional[float] = None
    seen: int = 0

    def unread(self, entries: List[LogEntry]) -> List[LogEntry]:
        if self.since is None:
            return list(entries)
        skip = self.seen
        fresh: List[LogEntry] = []
        for e in entries:
            if e.timestamp < self.since:
                continue
            if e.timestamp == self.since and skip:
                skip -= 1
                continue
            fresh.append(e)
        return fresh

    def advance(self, entries: List[LogEntry]) -> None:
        if not entries:
            return
        newest = max(e.timestamp for e in entries)
        at_newest = sum(1 for e in entries if e.timestamp == newest)
        if self.since is not None and newest == self.since:
            self.seen += at_newest
        elif self.since is None or newest > self.since:
            self.since = newest
            self.seen = at_newest


class CursorBook:
    """Bounded LRU of cursors keyed by (client, feed)."""

    def __init__(self, limit: int = 1024) -> None:
        self.limit = max(1, limit)
        self._cursors: "OrderedDict[Tuple[str, str], LogCursor]" = OrderedDict()

    def get(self, client: str, feed: str) -> LogCursor:
        key = (client, feed)
        cursor = self._cursors.get(key)
        if cursor is None:
            cursor = self._cursors[key] = LogCursor()
            while len(self._cursors) > self.limit:
                self._cursors.popitem(last=False)
        else:
            self._cursors.move_to_end(key)
        return cursor

    def __len__(self) -> int:
        return len(self._cursors)


async def read_feed(fetch: LogFetch, cursor: LogCursor, clock: Clock = now_ms) -> Dict[str, Any]:
    """
    Read everything the cursor has not returned yet. ``fetch(since)`` yields
    entries with ``timestamp >= since``. Returns ``{}`` when nothing is new
    so the caller can skip notifying; ``time`` is the server time of the read.
    """
    try:
        entries = cursor.unread(await fetch(cursor.since))
    except Exception as exc:
        log.warning("Log read failed: %s", exc)
        return {}
    if not entries:
        return {}
    cursor.advance(entries)
    return {"time": clock(), "logs": [e.to_dict() for e in entries]}


class ActivityStore(Protocol):
    async def get_activity(self, since: Optional[float] = None) -> List[LogEntry]: ...


@dataclass
class PagedSource:
    length: Callable[[], Awaitable[int]]
    slice: Callable[[int, int], Awaitable[List[Dict[str, Any]]]]


class ActivityReader:
    def __init__(self, store: ActivityStore, clock: Clock = now_ms) -> None:
        self._store = store
        self._clock = clock

    async def read(self, cursor: LogCursor) -> Dict[str, Any]:
        return await read_feed(self._store.get_activity, cursor, self._clock)


class PagedReader:
    """Page through a count/slice store (queue or error log)."""

    def __init__(self, store: PagedSource, *, default_size: int = 25,
                 max_size: Optional[int] = None, window: int = 5) -> None:
        self._store = store
        self.default_size = default_size
        self.max_size = max_size
        self.window = window

    async def page(self, page: Any = None, size: Any = None) -> Dict[str, Any]:
        try:
            count = await self._store.length()
            desc = self._paginate(count, page, size)
            items = await self._store.slice(desc.offset, desc.size) if count else []
        except Exception as exc:
            log.warning("Paged read failed: %s", exc)
            result = self._shape(self._paginate(0, page, size), [])
            result["error"] = str(exc) or exc.__class__.__name__
            return result
        return self._shape(desc, items)

    def _paginate(self, count: int, page: Any, size: Any) -> PageDescriptor:
        return paginate(
            count, size, page,
            default_size=self.default_size, max_size=self.max_size, window=self.window,
        )

    @staticmethod
    def _shape(desc: PageDescriptor, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "items": items,
            "count": desc.count,
            "page": desc.page,
            "size": desc.size,
            "pages": desc.pages.model_dump(),
        }
