from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from app.core.security import validate_api_key
from app.settings import get_settings

router = APIRouter(prefix="/api/v1", tags=["system"])


@router.get("/system/version", operation_id="get_system_version")
async def get_system_version():
    s = get_settings()
    return {"detail": "System Version.", "system_version": s.BRIDGEMON_BUILD_VERSION}


@router.get("/system/heartbeat", operation_id="heartbeat_check")
async def heartbeat_check():
    current_time = datetime.now(timezone.utc).isoformat()
    return {"status": "alive", "timestamp": current_time}


@router.get("/system/diagnostics", operation_id="diagnostics")
async def diagnostics(request: Request, _: str = Depends(validate_api_key)):
    """
    Extended readiness/diagnostics:
    - Redis ping
    - Registered bridges
    - Cursor book size
    """
    s = get_settings()
    rm = getattr(request.app.state, "rm", None)
    redis_ok = await rm.is_available() if rm is not None else False

    facade = getattr(request.app.state, "facade", None)
    cursors = getattr(request.app.state, "cursors", None)
    return {
        "redis": "ok" if redis_ok else "down",
        "bridges": facade.registry.names() if facade else [],
        "cursors": len(cursors) if cursors is not None else 0,
        "environment": s.BRIDGEMON_ENVIRONMENT,
        "pubsub_channel": s.PUBSUB_CHANNEL,
    }
