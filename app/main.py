# app/main.py
from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse, RedirectResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from app.core.bridges import BridgeRegistry, load_registry
from app.core.facade import QueryFacade
from app.core.logging import get_logger, setup_logging
from app.core.logs import CursorBook, LogCursor
from app.core.redis import RedisManager
from app.routers.system import router as system_router
from app.routers.ui import router as ui_router
from app.settings import get_settings

setup_logging(get_settings().BRIDGEMON_LOG_LEVEL)
log = get_logger("bridge-monitor.app")


async def push_once(facade: QueryFacade, rm: RedisManager, cursor: LogCursor) -> bool:
    """
    Publish activity (and the matching bridge updates) when there is
    something new. Returns True when an event was published.
    """
    activity = await facade.activity(cursor)
    if "logs" not in activity:
        return False
    await rm.publish_event("activity", activity)
    await rm.publish_event("updates", await facade.updates())
    return True


async def _push_relay(facade: QueryFacade, rm: RedisManager, interval: float):
    """
    Background task that notifies UI subscribers through Redis pub/sub.
    """
    cursor = LogCursor()
    log.info("Push relay publishing to %s every %.1fs", rm.pubsub_channel, interval)
    try:
        while True:
            try:
                await push_once(facade, rm, cursor)
            except Exception:
                log.exception("Error publishing UI update")
            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        log.info("Push relay cancelled.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    s = get_settings()

    if s.BRIDGEMON_SENTRY_DSN:
        sentry_sdk.init(
            dsn=s.BRIDGEMON_SENTRY_DSN,
            environment=s.BRIDGEMON_ENVIRONMENT,
            release=str(s.BRIDGEMON_BUILD_VERSION),
            traces_sample_rate=1,
            integrations=[
                FastApiIntegration(transaction_style="url"),
                StarletteIntegration(transaction_style="url"),
            ],
        )
        log.info("Sentry initialized.")
    else:
        log.info("Sentry disabled (BRIDGEMON_SENTRY_DSN empty).")

    log.info(
        "---------- BRIDGE MONITOR ----------\n"
        f"Version: {s.BRIDGEMON_BUILD_VERSION}\n"
        f"Environment: {s.BRIDGEMON_ENVIRONMENT}\n"
        f"Redis Host: {s.REDIS_HOST}\n"
        f"Redis Port: {s.REDIS_PORT}\n"
        f"Bridges: {', '.join(s.BRIDGES) or '(discover)'}\n"
        "------------------------------"
    )

    rm = RedisManager()
    redis_ok = await rm.is_available()
    if not redis_ok:
        log.warning("Redis is not reachable at startup; bridge discovery and push relay disabled.")
    if s.BRIDGES:
        registry = await load_registry(rm, s.BRIDGES)
    elif redis_ok:
        registry = await load_registry(rm)
    else:
        registry = BridgeRegistry()

    app.state.rm = rm
    app.state.facade = QueryFacade.from_redis(rm, registry, s)
    app.state.cursors = CursorBook(s.BRIDGEMON_CURSOR_LIMIT)

    relay_task = None
    if redis_ok:
        relay_task = asyncio.create_task(
            _push_relay(app.state.facade, rm, s.BRIDGEMON_PUSH_INTERVAL_SEC)
        )

    try:
        yield
    finally:
        if relay_task is not None:
            relay_task.cancel()
            with contextlib.suppress(Exception):
                await relay_task
        registry.clear()
        with contextlib.suppress(Exception):
            await rm.close()


def create_app() -> FastAPI:
    s = get_settings()
    app = FastAPI(
        title="Bridge Monitor",
        version=s.BRIDGEMON_BUILD_VERSION,
        lifespan=lifespan,
    )

    @app.get("/", include_in_schema=False)
    async def _root():
        return RedirectResponse(url="/docs", status_code=302)

    @app.get("/healthz", include_in_schema=False)
    async def _healthz():
        return JSONResponse({"status": "ok"})

    # Routers
    app.include_router(system_router)
    app.include_router(ui_router)

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title="Bridge Monitor API schema",
            version=s.BRIDGEMON_BUILD_VERSION,
            description="Bridge status, queue and error introspection",
            routes=app.routes,
        )
        openapi_schema["openapi"] = "3.0.3"
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=False)
