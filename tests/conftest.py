"""Shared fakes and fixtures for the bridge monitor tests."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from app.core.aggregator import StatAggregator
from app.core.bridges import BridgeRegistry
from app.core.commands import CommandDispatcher
from app.core.facade import QueryFacade
from app.core.logs import ActivityReader, PagedReader, PagedSource
from app.models import LogEntry


class FakeBridge:
    """In-memory bridge with optional failure modes."""

    def __init__(self, name, stats=None, last=None, current=None, logs=None,
                 fail=None, delay=0.0):
        self.name = name
        self.stats = dict(stats or {})
        self.last = last
        self.current = current
        self.logs: List[LogEntry] = list(logs or [])
        self.fail = fail
        self.delay = delay

    async def _maybe_fail(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise self.fail

    async def get_stats(self):
        await self._maybe_fail()
        return dict(self.stats)

    async def get_last(self):
        await self._maybe_fail()
        return self.last

    async def get_current(self):
        await self._maybe_fail()
        return self.current

    async def get_logs(self, since: Optional[float] = None):
        return [e for e in self.logs if since is None or e.timestamp >= since]


class FakeStore:
    """Counter, activity feed, queue and error store held in lists."""

    def __init__(self):
        self.count = 0
        self.activity: List[LogEntry] = []
        self.queue: List[Dict[str, Any]] = []
        self.errors: List[Dict[str, Any]] = []
        self.count_calls = 0

    async def get_count(self):
        self.count_calls += 1
        return self.count

    async def get_activity(self, since: Optional[float] = None):
        return [e for e in self.activity if since is None or e.timestamp >= since]

    async def queue_length(self):
        return len(self.queue)

    async def get_queue(self, offset, size):
        return self.queue[offset:offset + size]

    async def error_count(self):
        return len(self.errors)

    async def get_errors(self, offset, size):
        return list(reversed(self.errors))[offset:offset + size]


class FakeChannel:
    """Command channel that applies clean-err to a FakeStore and records calls."""

    def __init__(self, store: FakeStore, fail: Optional[Exception] = None):
        self.store = store
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []
        self.restarts = 0

    async def query(self, cmd):
        self.calls.append(dict(cmd))
        if self.fail:
            raise self.fail
        if cmd["cmd"] == "clean-err":
            before = len(self.store.errors)
            self.store.errors = [e for e in self.store.errors if e["error"] != cmd["error"]]
            return {"success": True, "removed": before - len(self.store.errors)}
        if cmd["cmd"] == "restart":
            self.restarts += 1
            return {"success": True}
        return {"success": False}


def entry(ts, message="event", level="info"):
    return LogEntry(timestamp=ts, level=level, message=message)


def error_record(i, error="timeout"):
    return {"id": str(i), "error": error, "context": {"n": i}, "timestamp": 1000.0 + i}


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def channel(store):
    return FakeChannel(store)


@pytest.fixture
def bridges():
    return [
        FakeBridge("sipd", stats={"processed": 10, "failed": 1}, last=42, current=None,
                   logs=[entry(1.0, "started")]),
        FakeBridge("spp", stats={"processed": 3}, last=None, current="job-7"),
    ]


@pytest.fixture
def registry(bridges):
    return BridgeRegistry(bridges)


@pytest.fixture
def clock():
    return lambda: 5000.0


@pytest.fixture
def facade(registry, store, channel, clock):
    return QueryFacade(
        registry=registry,
        aggregator=StatAggregator(store.get_count, timeout=0.5),
        activity=ActivityReader(store, clock=clock),
        queue=PagedReader(PagedSource(store.queue_length, store.get_queue), default_size=20),
        errors=PagedReader(PagedSource(store.error_count, store.get_errors), default_size=20),
        dispatcher=CommandDispatcher(channel),
        about={"title": "Bridge Monitor", "version": "1.0.0", "author": "", "license": "MIT"},
        clock=clock,
    )
