from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, runtime_checkable

from app.core.logging import get_logger
from app.core.redis import RedisManager
from app.models import LogEntry

log = get_logger("bridge-monitor.bridges")


@runtime_checkable
class BridgeHandle(Protocol):
    """Read-only view of one running bridge."""

    name: str

    async def get_stats(self) -> Dict[str, int]: ...

    async def get_last(self) -> Any: ...

    async def get_current(self) -> Any: ...

    async def get_logs(self, since: Optional[float] = None) -> List[LogEntry]: ...


class RedisBridge:
    """BridgeHandle backed by the keys a bridge worker maintains in Redis."""

    def __init__(self, name: str, rm: RedisManager) -> None:
        self.name = name
        self._rm = rm

    async def get_stats(self) -> Dict[str, int]:
        return await self._rm.get_bridge_stats(self.name)

    async def get_last(self) -> Optional[str]:
        return await self._rm.get_bridge_value(self.name, "last")

    async def get_current(self) -> Optional[str]:
        return await self._rm.get_bridge_value(self.name, "current")

    async def get_logs(self, since: Optional[float] = None) -> List[LogEntry]:
        return await self._rm.get_bridge_logs(self.name, since)

    def __repr__(self) -> str:
        return f"RedisBridge(name={self.name!r})"


class BridgeRegistry:
    """
    Bridges keyed by name. Iteration follows registration order, which is
    also the display order of snapshots and updates.
    """

    def __init__(self, bridges: Iterable[BridgeHandle] = ()) -> None:
        self._bridges: "OrderedDict[str, BridgeHandle]" = OrderedDict()
        for bridge in bridges:
            self.register(bridge)

    def register(self, bridge: BridgeHandle) -> None:
        if bridge.name in self._bridges:
            raise ValueError(f"Bridge already registered: {bridge.name}")
        self._bridges[bridge.name] = bridge

    def get(self, name: str) -> Optional[BridgeHandle]:
        return self._bridges.get(name)

    def names(self) -> List[str]:
        return list(self._bridges)

    def clear(self) -> None:
        self._bridges.clear()

    def __iter__(self) -> Iterator[BridgeHandle]:
        return iter(list(self._bridges.values()))

    def __len__(self) -> int:
        return len(self._bridges)

    def __contains__(self, name: object) -> bool:
        return name in self._bridges


async def load_registry(rm: RedisManager, names: Optional[List[str]] = None) -> BridgeRegistry:
    """
    Build the registry from configured names, or discover bridges from Redis
    when none are configured.
    """
    if not names:
        names = await rm.search_bridges()
        log.info("Discovered %d bridge(s) in Redis: %s", len(names), ", ".join(names) or "-")
    registry = BridgeRegistry()
    for name in names:
        if name in registry:
            log.warning("Ignoring duplicate bridge name: %s", name)
            continue
        registry.register(RedisBridge(name, rm))
    return registry
