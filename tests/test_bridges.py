"""Tests for the bridge registry and Redis-backed bridge handles."""

import pytest

from app.core.bridges import BridgeHandle, BridgeRegistry, RedisBridge, load_registry
from app.models import LogEntry
from conftest import FakeBridge


class StubRedisManager:
    def __init__(self, names=()):
        self.names = list(names)
        self.searched = False

    async def search_bridges(self):
        self.searched = True
        return list(self.names)

    async def get_bridge_stats(self, name):
        return {"processed": len(name)}

    async def get_bridge_value(self, name, part):
        return f"{name}-{part}" if part == "last" else None

    async def get_bridge_logs(self, name, since=None):
        return [LogEntry(timestamp=1.0, message=name)]


class TestRegistry:
    def test_lookup_by_name(self, registry):
        assert registry.get("spp").name == "spp"
        assert registry.get("missing") is None
        assert "sipd" in registry

    def test_iteration_keeps_registration_order(self):
        registry = BridgeRegistry([FakeBridge("b"), FakeBridge("a"), FakeBridge("c")])
        assert [b.name for b in registry] == ["b", "a", "c"]
        assert registry.names() == ["b", "a", "c"]

    def test_duplicate_names_rejected(self):
        registry = BridgeRegistry([FakeBridge("a")])
        with pytest.raises(ValueError):
            registry.register(FakeBridge("a"))

    def test_clear_detaches_all(self, registry):
        registry.clear()
        assert len(registry) == 0

    def test_fake_bridge_satisfies_protocol(self):
        assert isinstance(FakeBridge("x"), BridgeHandle)


class TestRedisBridge:
    @pytest.mark.asyncio
    async def test_reads_through_manager(self):
        bridge = RedisBridge("sipd", StubRedisManager())
        assert await bridge.get_stats() == {"processed": 4}
        assert await bridge.get_last() == "sipd-last"
        assert await bridge.get_current() is None
        assert (await bridge.get_logs())[0].message == "sipd"


class TestLoadRegistry:
    @pytest.mark.asyncio
    async def test_configured_names(self):
        rm = StubRedisManager(names=["ignored"])
        registry = await load_registry(rm, ["spp", "sipd", "spp"])
        assert registry.names() == ["spp", "sipd"]
        assert not rm.searched

    @pytest.mark.asyncio
    async def test_discovery(self):
        rm = StubRedisManager(names=["a", "b"])
        registry = await load_registry(rm)
        assert registry.names() == ["a", "b"]
        assert rm.searched
