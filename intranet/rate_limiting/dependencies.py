import time
from typing import Optional
from fastapi import HTTPException, Request,status
from intranet.rate_limiting.constants import DEFAULT_LIMIT, DEFAULT_WINDOW, RATE_LIMIT_PREFIX
from intranet.rate_limiting.rate_limit_fixed_window import redis_allow
from intranet.rate_limiting.utils import client_ip, hash_source


def get_redis(request: Request):
    return request.app.state.redis


def source_hash(request: Request) -> str:
    """Hashed client ip; the only form of the caller's identity handed to the services."""
    return hash_source(client_ip(request))


def rate_limit_dependency(limit: int = DEFAULT_LIMIT, window: int = DEFAULT_WINDOW, route_key: Optional[str] = None):
    async def _dep(request: Request):
        key_route = route_key or request.url.path
        key = f"{RATE_LIMIT_PREFIX}:ip:{source_hash(request)}:{key_route}"
        allowed, remaining, reset = await redis_allow(get_redis(request), key, limit, window)
        request.state.rate_limit = {"limit": limit, "remaining": remaining, "reset": reset}
        if not allowed:
            retry_after = max(0, reset - int(time.time()))
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(retry_after)}
        )
    return _dep
