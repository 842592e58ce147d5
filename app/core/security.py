# app/core/security.py
from __future__ import annotations

from time import time

from fastapi import Header, HTTPException, Request

from app.core.logging import get_logger
from app.core.redis import RedisManager
from app.settings import get_settings

log = get_logger("bridge-monitor.security")


# ------------------- API Key helpers -------------------

async def validate_api_key(x_api_key: str = Header(...)) -> str:
    """
    Validates that the provided header is one of the *admin* keys.
    """
    s = get_settings()
    if x_api_key not in s.API_KEYS:
        raise HTTPException(
            status_code=401,
            detail={
                "error_code": "BRIDGEMON_API_KEYS",
                "message": "Invalid admin API key",
            },
        )
    return x_api_key


# ------------------- Rate limiting -------------------


def get_redis_manager(request: Request) -> RedisManager:
    """The process-wide manager opened in the application lifespan."""
    return request.app.state.rm


async def check_rate_limit(
    rm: RedisManager, bucket: str, key: str, limit: int, window_sec: int
) -> None:
    if not await rm.is_available():
        return

    window = int(time() // window_sec)
    rkey = rm.ns_key(f"rl:{bucket}:{key}:{window}")
    count = await rm.redis.incr(rkey)
    if count == 1:
        await rm.redis.expire(rkey, window_sec)

    if count > limit:
        ttl = await rm.redis.ttl(rkey)
        log.warning("Rate limit hit for bucket %s", bucket)
        raise HTTPException(
            status_code=429,
            detail={
                "error_code": "RATE_LIMITED",
                "message": f"Too many requests (limit {limit}/{window_sec}s)",
                "retry_after_sec": max(ttl, 1),
            },
        )
