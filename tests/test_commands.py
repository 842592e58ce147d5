"""Tests for CommandDispatcher and the Redis command channel."""

import asyncio

import pytest

from app.core.commands import CommandDispatcher, RedisCommandChannel
from conftest import FakeChannel, error_record


@pytest.fixture
def dispatcher(channel):
    return CommandDispatcher(channel)


class TestCleanErr:
    @pytest.mark.asyncio
    async def test_missing_error_fails_softly(self, dispatcher, channel):
        assert await dispatcher.execute("clean-err", {}) == {"success": False}
        assert await dispatcher.execute("remove", None) == {"success": False}
        assert channel.calls == []

    @pytest.mark.asyncio
    async def test_blank_error_fails_softly(self, dispatcher, channel):
        assert await dispatcher.execute("remove", {"error": "  "}) == {"success": False}
        assert channel.calls == []

    @pytest.mark.asyncio
    async def test_non_string_error_is_forwarded(self, dispatcher, channel):
        assert await dispatcher.execute("remove", {"error": 0}) == {"success": False}
        assert channel.calls == []
        result = await dispatcher.execute("remove", {"error": 42})
        assert result["success"] is True
        assert channel.calls == [{"cmd": "clean-err", "error": 42}]

    @pytest.mark.asyncio
    async def test_removes_matching_category(self, dispatcher, channel, store):
        store.errors = [error_record(1, "timeout"), error_record(2, "auth"), error_record(3, "timeout")]
        result = await dispatcher.execute("remove", {"error": "timeout"})
        assert result["success"] is True
        assert result["removed"] == 2
        assert [e["error"] for e in store.errors] == ["auth"]
        assert channel.calls == [{"cmd": "clean-err", "error": "timeout"}]

    @pytest.mark.asyncio
    async def test_no_matching_records_is_success(self, dispatcher, store):
        store.errors = [error_record(1, "auth")]
        result = await dispatcher.execute("clean-err", {"error": "timeout"})
        assert result["success"] is True
        assert len(store.errors) == 1

    @pytest.mark.asyncio
    async def test_repeatable(self, dispatcher, store):
        store.errors = [error_record(1, "timeout")]
        assert (await dispatcher.execute("remove", {"error": "timeout"}))["success"]
        assert (await dispatcher.execute("remove", {"error": "timeout"}))["success"]
        assert store.errors == []


class TestRestart:
    @pytest.mark.asyncio
    async def test_restart_twice(self, dispatcher, channel):
        first = await dispatcher.execute("restart", {})
        second = await dispatcher.execute("restart")
        assert "success" in first and "success" in second
        assert channel.restarts == 2

    @pytest.mark.asyncio
    async def test_channel_failure_is_folded_in(self, store):
        dispatcher = CommandDispatcher(FakeChannel(store, fail=RuntimeError("subsystem busy")))
        result = await dispatcher.execute("restart")
        assert result == {"success": False, "error": "subsystem busy"}

    @pytest.mark.asyncio
    async def test_reply_without_success_is_failure(self):
        class Silent:
            async def query(self, cmd):
                return {"message": "queued"}

        result = await CommandDispatcher(Silent()).execute("restart")
        assert result == {"success": False, "message": "queued"}


class TestUnknown:
    @pytest.mark.asyncio
    async def test_unknown_op_is_noop(self, dispatcher, channel):
        assert await dispatcher.execute("frobnicate", {"error": "x"}) == {"success": False}
        assert channel.calls == []


class FakeRedisManager:
    def __init__(self, reply=None):
        self.pushed = []
        self.reply = reply

    async def push_command(self, payload):
        self.pushed.append(payload)

    async def wait_reply(self, request_id, timeout):
        return self.reply


class TestRedisCommandChannel:
    @pytest.mark.asyncio
    async def test_pushes_command_with_id(self):
        rm = FakeRedisManager(reply={"success": True})
        reply = await RedisCommandChannel(rm, timeout=1).query({"cmd": "restart"})
        assert reply == {"success": True}
        assert rm.pushed[0]["cmd"] == "restart"
        assert rm.pushed[0]["id"]

    @pytest.mark.asyncio
    async def test_no_reply_raises_timeout(self):
        with pytest.raises(asyncio.TimeoutError):
            await RedisCommandChannel(FakeRedisManager(), timeout=1).query({"cmd": "restart"})

    @pytest.mark.asyncio
    async def test_timeout_becomes_failed_result(self):
        dispatcher = CommandDispatcher(RedisCommandChannel(FakeRedisManager(), timeout=1))
        result = await dispatcher.execute("restart")
        assert result["success"] is False
        assert "no reply" in result["error"]
