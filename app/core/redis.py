from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple, Union

import redis.asyncio as redis

from app.core.logging import get_logger
from app.models import ErrorRecord, LogEntry, QueueItem
from app.settings import get_settings

log = get_logger("bridge-monitor.redis")


class RedisManager:
    """
    Async Redis access to the state the bridge workers publish: per-bridge
    stats/last/current/logs, the global counter, the activity feed, the queue,
    the error store, and the command/reply lists. Also publishes UI events.
    """

    @staticmethod
    def _to_str(val: Union[bytes, str, None]) -> str:
        if val is None:
            return ""
        if isinstance(val, bytes):
            return val.decode()
        return str(val)

    @classmethod
    def _build_redis_client(cls, s) -> Tuple[redis.Redis, redis.ConnectionPool]:
        pool = redis.ConnectionPool(
            host=s.REDIS_HOST,
            port=s.REDIS_PORT,
            db=s.REDIS_DB,
            password=s.REDIS_PASSWORD,
            max_connections=128,
            decode_responses=False,
            socket_keepalive=True,
            socket_timeout=2.0,
            socket_connect_timeout=2.0,
        )
        return redis.Redis(connection_pool=pool), pool

    def __init__(self) -> None:
        s = get_settings()
        self.redis, self._pool = self._build_redis_client(s)
        self.namespace = s.BRIDGEMON_REDIS_NAMESPACE
        self.pubsub_channel = self.ns_key(s.PUBSUB_CHANNEL)

    # ------------------- key helpers -------------------
    @staticmethod
    def bridge_key(name: str, part: str) -> str:
        return f"bridge:{name}:{part}"

    @staticmethod
    def reply_key(request_id: str) -> str:
        return f"commands:reply:{request_id}"

    def ns_key(self, key: str) -> str:
        """Prefix Redis keys with BRIDGEMON_REDIS_NAMESPACE (idempotent)."""
        ns = str(self.namespace or "").strip(":")
        if not ns:
            return key
        prefix = f"{ns}:"
        return key if key.startswith(prefix) else f"{prefix}{key}"

    # ------------------- connectivity -------------------
    async def is_available(self) -> bool:
        try:
            await self.redis.ping()
            return True
        except Exception:
            return False

    async def close(self) -> None:
        # the client does not own an explicitly passed pool
        try:
            await self.redis.aclose()
        finally:
            await self._pool.disconnect()

    # ------------------- bridges -------------------
    async def search_bridges(self) -> List[str]:
        names: List[str] = []
        pattern = self.ns_key(self.bridge_key("*", "stats"))
        ns = str(self.namespace or "").strip(":")
        prefix = f"{ns}:" if ns else ""
        async for key in self.redis.scan_iter(match=pattern):
            k = self._to_str(key)
            if prefix and k.startswith(prefix):
                k = k[len(prefix):]
            parts = k.split(":")
            if len(parts) >= 3:
                names.append(":".join(parts[1:-1]))
        return sorted(set(names))

    async def get_bridge_stats(self, name: str) -> Dict[str, int]:
        raw = await self.redis.hgetall(self.ns_key(self.bridge_key(name, "stats")))
        stats: Dict[str, int] = {}
        for k, v in raw.items():
            try:
                stats[self._to_str(k)] = int(v)
            except (TypeError, ValueError):
                log.debug("Skipping non-integer stat %s=%r on bridge %s", k, v, name)
        return stats

    async def get_bridge_value(self, name: str, part: str) -> Optional[str]:
        val = await self.redis.get(self.ns_key(self.bridge_key(name, part)))
        return None if val is None else self._to_str(val)

    async def get_bridge_logs(self, name: str, since: Optional[float] = None) -> List[LogEntry]:
        return await self._read_log(self.ns_key(self.bridge_key(name, "logs")), since)

    # ------------------- counter & activity -------------------
    async def get_count(self) -> int:
        val = await self.redis.get(self.ns_key("counter"))
        return int(val) if val is not None else 0

    async def get_activity(self, since: Optional[float] = None) -> List[LogEntry]:
        return await self._read_log(self.ns_key("activity"), since)

    async def _read_log(self, key: str, since: Optional[float]) -> List[LogEntry]:
        # Lists are append-only, most-recent-last; retention is trimmed by the writers.
        entries: List[LogEntry] = []
        for raw in await self.redis.lrange(key, 0, -1):
            try:
                entry = LogEntry.model_validate(json.loads(self._to_str(raw)))
            except ValueError:
                log.warning("Dropping malformed log entry in %s", key)
                continue
            if since is None or entry.timestamp >= since:
                entries.append(entry)
        return entries

    # ------------------- queue -------------------
    async def queue_length(self) -> int:
        return int(await self.redis.llen(self.ns_key("queue")))

    async def get_queue(self, offset: int, size: int) -> List[Dict[str, Any]]:
        key = self.ns_key("queue")
        raw = await self.redis.lrange(key, offset, offset + size - 1)
        return self._decode_items(key, raw, QueueItem)

    # ------------------- errors -------------------
    async def error_count(self) -> int:
        return int(await self.redis.llen(self.ns_key("errors")))

    async def get_errors(self, offset: int, size: int) -> List[Dict[str, Any]]:
        # newest first
        key = self.ns_key("errors")
        raw = await self.redis.lrange(key, -(offset + size), -(offset + 1))
        items = self._decode_items(key, raw, ErrorRecord)
        items.reverse()
        return items

    def _decode_items(self, key: str, raw: List[Any], model) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for r in raw:
            try:
                items.append(model.model_validate(json.loads(self._to_str(r))).to_dict())
            except ValueError:
                log.warning("Dropping malformed item in %s", key)
        return items

    # ------------------- commands -------------------
    async def push_command(self, payload: Dict[str, Any]) -> None:
        await self.redis.rpush(self.ns_key("commands"), json.dumps(payload).encode())

    async def wait_reply(self, request_id: str, timeout: int) -> Optional[Dict[str, Any]]:
        res = await self.redis.blpop([self.ns_key(self.reply_key(request_id))], timeout=timeout)
        if res is None:
            return None
        _, raw = res
        data = json.loads(self._to_str(raw))
        return data if isinstance(data, dict) else {"success": bool(data)}

    # ------------------- Pub/Sub -------------------
    async def publish_event(self, op: str, payload: Dict[str, Any]) -> None:
        try:
            msg = json.dumps({"op": op, **payload})
            await self.redis.publish(self.pubsub_channel, msg.encode())
        except Exception as exc:
            log.debug("Publish failed: %s", exc)
