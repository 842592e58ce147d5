"""Tests for the pub/sub push relay step."""

import pytest

from app.core.logs import LogCursor
from app.main import push_once
from conftest import entry


class RecordingManager:
    def __init__(self):
        self.events = []

    async def publish_event(self, op, payload):
        self.events.append((op, payload))


@pytest.mark.asyncio
async def test_nothing_new_publishes_nothing(facade):
    rm = RecordingManager()
    assert await push_once(facade, rm, LogCursor()) is False
    assert rm.events == []


@pytest.mark.asyncio
async def test_new_activity_publishes_activity_and_updates(facade, store):
    rm = RecordingManager()
    cursor = LogCursor()
    store.activity = [entry(10.0, "queued")]

    assert await push_once(facade, rm, cursor) is True
    assert [op for op, _ in rm.events] == ["activity", "updates"]
    assert rm.events[0][1]["logs"][0]["message"] == "queued"
    assert "sipd" in rm.events[1][1]["updates"]

    assert await push_once(facade, rm, cursor) is False
    assert len(rm.events) == 2
