from fastapi import APIRouter, Depends, Request
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from intranet.common.logging_setup import get_logger
from intranet.common.utils import success_response
from intranet.db.dependencies import get_session
from intranet.db.utils import db_guard

logger = get_logger("arl.health")

home_router = APIRouter()


@home_router.get("/health")
@db_guard("health")
async def health_check(request: Request, session: AsyncSession = Depends(get_session)):
    await session.execute(select(1))

    redis_ok = True
    try:
        await request.app.state.redis.ping()
    except RedisError as exc:
        # suggestions fail closed without redis; the service itself is still up
        logger.warning("health.redis_unreachable", extra={"error": str(exc)})
        redis_ok = False

    return success_response({"status": "healthy" if redis_ok else "degraded", "database": "ok",
                             "redis": "ok" if redis_ok else "unreachable"})
