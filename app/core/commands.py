from __future__ import annotations

import asyncio
import uuid
from typing import Any, Dict, Mapping, Optional, Protocol

from app.core.logging import get_logger
from app.core.redis import RedisManager
from app.models import CommandResult

log = get_logger("bridge-monitor.commands")

CLEAN_ERR = "clean-err"
RESTART = "restart"

# operation name accepted at the boundary -> channel command
OPERATIONS = {
    "remove": CLEAN_ERR,
    CLEAN_ERR: CLEAN_ERR,
    RESTART: RESTART,
}


class CommandChannel(Protocol):
    async def query(self, cmd: Dict[str, Any]) -> Dict[str, Any]: ...


class RedisCommandChannel:
    """
    Hands commands to the bridge/queue subsystem through a Redis list and
    waits for its reply on a per-request key.
    """

    def __init__(self, rm: RedisManager, timeout: int = 10) -> None:
        self._rm = rm
        self.timeout = timeout

    async def query(self, cmd: Dict[str, Any]) -> Dict[str, Any]:
        request_id = uuid.uuid4().hex
        await self._rm.push_command({"id": request_id, **cmd})
        reply = await self._rm.wait_reply(request_id, self.timeout)
        if reply is None:
            raise asyncio.TimeoutError(f"no reply to {cmd.get('cmd')} within {self.timeout}s")
        return reply


class CommandDispatcher:
    """
    Validates administrative operations and forwards them to the command
    channel. Always returns a CommandResult-shaped dict.
    """

    def __init__(self, channel: CommandChannel) -> None:
        self._channel = channel

    def build(self, op: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Channel command for `op`, or None when the request is not runnable."""
        params = params or {}
        cmd = OPERATIONS.get(op)
        if cmd == CLEAN_ERR:
            error = params.get("error")
            if not error or (isinstance(error, str) and not error.strip()):
                log.info("Ignoring %s without an error category", op)
                return None
            return {"cmd": CLEAN_ERR, "error": error}
        if cmd == RESTART:
            return {"cmd": RESTART}
        log.warning("Unknown task operation: %r", op)
        return None

    async def execute(self, op: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        result = CommandResult(success=False).to_dict()
        cmd = self.build(op, params)
        if cmd is None:
            return result
        try:
            reply = await self._channel.query(cmd)
        except Exception as exc:
            log.warning("Command %s failed: %s", cmd["cmd"], exc)
            result["error"] = str(exc) or exc.__class__.__name__
            return result
        if isinstance(reply, Mapping):
            result.update(reply)
        result["success"] = bool(result.get("success"))
        log.info("Command %s -> success=%s", cmd["cmd"], result["success"])
        return result
