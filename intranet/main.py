from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from intranet.api import cur_version, version_prefix
from intranet.api.routers import admin_prefix, admin_routers, public_routers
from intranet.cache._cache import redis_client
from intranet.common.custom_exceptions import register_all_exceptions
from intranet.common.logging_setup import setup_logging, shutdown_logging
from intranet.config.admin_config import admin_config
from intranet.db.connection import async_engine, async_session
from intranet.middlewares.auth_middleware import AuthenticationMiddleware
from intranet.middlewares.request_id_middleware import RequestIdMiddleware
from intranet.notifications.sms import SmsDispatcher, SmsSender, build_sms_sender
from metrics.custom_instrumentator import build_instrumentator


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    logger = setup_logging()
    logger.info("app.startup", extra={"env": admin_config.ENV})

    try:
        yield
    finally:
        # new requests are no longer accepted here; let queued sms go out first
        await app.state.sms_dispatcher.drain()
        if app.state.owns_stores:
            await redis_client.aclose()
            await async_engine.dispose()
        logger.info("app.shutdown")
        shutdown_logging()


def create_app(session_maker=None, redis=None, sms_sender: Optional[SmsSender] = None) -> FastAPI:
    """
    Stores default to the process-wide engine and redis client; tests pass
    their own session maker, redis and sms sender.
    """
    app=FastAPI(
        title="ARL Intranet",
        version=cur_version,
        lifespan=app_lifespan)

    app.state.owns_stores = session_maker is None and redis is None
    app.state.session_maker = session_maker or async_session
    app.state.redis = redis if redis is not None else redis_client
    app.state.sms_dispatcher = SmsDispatcher(sms_sender or build_sms_sender())

    app.include_router(public_routers)

    if admin_config.ENABLE_ADMIN:
        app.include_router(admin_routers)      # mounts /api/v1/admin

    app.add_middleware(AuthenticationMiddleware, paths=[admin_prefix])
    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    if admin_config.ENABLE_METRICS:
        build_instrumentator(f"{version_prefix}/health").instrument(app).expose(app, endpoint="/metrics")

    return app

app=create_app()
