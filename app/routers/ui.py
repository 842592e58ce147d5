# app/routers/ui.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, Path, Query, Request

from app.core.facade import QueryFacade
from app.core.logs import CursorBook
from app.core.redis import RedisManager
from app.core.security import check_rate_limit, get_redis_manager, validate_api_key
from app.models import TaskRequest
from app.settings import get_settings

router = APIRouter(prefix="/ui", tags=["ui"])


def get_facade(request: Request) -> QueryFacade:
    return request.app.state.facade


def get_cursors(request: Request) -> CursorBook:
    return request.app.state.cursors


async def task_rate_limit(
    x_api_key: str = Depends(validate_api_key),
    rm: RedisManager = Depends(get_redis_manager),
) -> str:
    # rate limit admin actions
    s = get_settings()
    await check_rate_limit(rm, "task", x_api_key, s.RL_TASK_LIMIT_PER_MIN, 60)
    return x_api_key


def client_id(request: Request, x_client_id: Optional[str] = Header(None)) -> str:
    """
    Cursor identity: the x-client-id header, else the peer address plus the
    user agent. Clients sharing both also share a cursor.
    """
    explicit = (x_client_id or "").strip()
    if explicit:
        return explicit
    host = request.client.host if request.client else ""
    agent = request.headers.get("user-agent", "")
    if not host and not agent:
        return "anonymous"
    return f"peer:{host}|{agent}"


@router.get("/snapshot", operation_id="ui_snapshot")
async def snapshot(
    facade: QueryFacade = Depends(get_facade),
    _: str = Depends(validate_api_key),
) -> Dict[str, Any]:
    return await facade.snapshot()


@router.get("/updates", operation_id="ui_updates")
async def updates(
    facade: QueryFacade = Depends(get_facade),
    _: str = Depends(validate_api_key),
) -> Dict[str, Any]:
    return await facade.updates()


@router.get("/activity", operation_id="ui_activity")
async def activity(
    facade: QueryFacade = Depends(get_facade),
    cursors: CursorBook = Depends(get_cursors),
    client: str = Depends(client_id),
    _: str = Depends(validate_api_key),
) -> Dict[str, Any]:
    return await facade.activity(cursors.get(client, "activity"))


@router.get("/log/{bridge}", operation_id="ui_bridge_log")
async def bridge_log(
    bridge: str = Path(...),
    facade: QueryFacade = Depends(get_facade),
    cursors: CursorBook = Depends(get_cursors),
    client: str = Depends(client_id),
    _: str = Depends(validate_api_key),
) -> Dict[str, Any]:
    if bridge not in facade.registry:
        return {}
    return await facade.bridge_log(bridge, cursors.get(client, f"log:{bridge}"))


@router.get("/queue", operation_id="ui_queue")
async def queue(
    page: Optional[str] = Query(None),
    size: Optional[str] = Query(None),
    facade: QueryFacade = Depends(get_facade),
    _: str = Depends(validate_api_key),
) -> Dict[str, Any]:
    return await facade.queue(page, size)


@router.get("/error", operation_id="ui_errors")
async def errors(
    page: Optional[str] = Query(None),
    size: Optional[str] = Query(None),
    facade: QueryFacade = Depends(get_facade),
    _: str = Depends(validate_api_key),
) -> Dict[str, Any]:
    return await facade.errors(page, size)


@router.get("/about", operation_id="ui_about")
async def about(facade: QueryFacade = Depends(get_facade)) -> Dict[str, Any]:
    return facade.about()


@router.post("/task/{op}", operation_id="ui_task")
async def task(
    op: str = Path(...),
    body: Optional[TaskRequest] = Body(None),
    facade: QueryFacade = Depends(get_facade),
    _: str = Depends(task_rate_limit),
) -> Dict[str, Any]:
    params = body.model_dump(exclude_none=True) if body else {}
    return await facade.task(op, params)
