from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from app.core.bridges import BridgeHandle
from app.core.logging import get_logger

log = get_logger("bridge-monitor.aggregator")

CountSource = Callable[[], Awaitable[int]]


def _stringify(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class BridgeResult:
    """Outcome of polling one bridge: either its state or the failure reason."""

    name: str
    stat: Dict[str, int] = field(default_factory=dict)
    last: Optional[str] = None
    current: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_update(self) -> Dict[str, Any]:
        if not self.ok:
            return {"error": self.error}
        return {**self.stat, "last": self.last, "current": self.current}

    def as_entry(self) -> Dict[str, Any]:
        if not self.ok:
            return {"name": self.name, "error": self.error}
        return {"name": self.name, "stat": self.stat, "last": self.last, "current": self.current}


class StatAggregator:
    """
    Polls every bridge concurrently and merges the results. Nothing is cached:
    each call reads the bridges and the counter again.
    """

    def __init__(self, count_source: CountSource, timeout: float = 2.0) -> None:
        self._count_source = count_source
        self.timeout = timeout

    async def _fetch(self, bridge: BridgeHandle) -> BridgeResult:
        stat, last, current = await asyncio.gather(
            bridge.get_stats(), bridge.get_last(), bridge.get_current()
        )
        return BridgeResult(
            name=bridge.name,
            stat=dict(stat or {}),
            last=_stringify(last),
            current=_stringify(current),
        )

    async def poll(self, bridge: BridgeHandle) -> BridgeResult:
        try:
            return await asyncio.wait_for(self._fetch(bridge), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.warning("Bridge %s did not answer within %.1fs", bridge.name, self.timeout)
            return BridgeResult(name=bridge.name, error="timeout")
        except Exception as exc:
            log.warning("Bridge %s poll failed: %s", bridge.name, exc)
            return BridgeResult(name=bridge.name, error=str(exc) or exc.__class__.__name__)

    async def poll_all(self, bridges: Iterable[BridgeHandle]) -> List[BridgeResult]:
        return list(await asyncio.gather(*(self.poll(b) for b in bridges)))

    async def collect(self, bridges: Iterable[BridgeHandle]) -> Dict[str, Dict[str, Any]]:
        return {r.name: r.as_update() for r in await self.poll_all(bridges)}

    async def get_count(self) -> Optional[int]:
        try:
            return await self._count_source()
        except Exception as exc:
            log.warning("Counter read failed: %s", exc)
            return None

    async def updates(self, bridges: Iterable[BridgeHandle]) -> Dict[str, Any]:
        counter, updates = await asyncio.gather(self.get_count(), self.collect(bridges))
        return {"counter": counter, "updates": updates}

    async def snapshot(self, bridges: Iterable[BridgeHandle]) -> Dict[str, Any]:
        counter, results = await asyncio.gather(self.get_count(), self.poll_all(bridges))
        return {"counter": counter, "bridges": [r.as_entry() for r in results]}
