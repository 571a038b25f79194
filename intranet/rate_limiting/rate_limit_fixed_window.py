import time
from datetime import datetime
from redis.exceptions import RedisError
from intranet.common.custom_exceptions import StoreUnavailable
from intranet.common.logging_setup import get_logger
from intranet.rate_limiting.constants import FAIL_OPEN
from intranet.rate_limiting.lua_scripts import LUA_FIXED_WINDOW_INCR_AND_PEXPIRE, LUA_FIXED_WINDOW_RELEASE, LUA_FIXED_WINDOW_RESERVE
from intranet.rate_limiting.utils import run_script

logger = get_logger("arl.rate_limiting")


def window_start(at: datetime, window: int) -> int:
    """Fixed bucket the instant falls into, as unix seconds."""
    ts = int(at.timestamp())
    return ts - (ts % window)


def window_key(prefix: str, identifier: str, start: int) -> str:
    return f"{prefix}:{identifier}:{start}"


async def window_count(rc, key: str) -> int:
    """Current count of a window without touching it."""
    try:
        raw = await rc.get(key)
    except RedisError as exc:
        raise StoreUnavailable("redis", "window_count") from exc
    return int(raw) if raw is not None else 0


async def reserve_slot(rc, key: str, limit: int, window: int) -> tuple[bool, int]:
    """
    Atomically take one slot of the window if any is left.
    Returns (allowed, count_after).
    """
    try:
        res = await run_script(rc, LUA_FIXED_WINDOW_RESERVE, [key], [limit, int(window * 1000)])
    except RedisError as exc:
        raise StoreUnavailable("redis", "reserve_slot") from exc
    allowed, count = int(res[0]), int(res[1])
    return allowed == 1, count


async def release_slot(rc, key: str) -> int:
    try:
        res = await run_script(rc, LUA_FIXED_WINDOW_RELEASE, [key], [])
    except RedisError as exc:
        raise StoreUnavailable("redis", "release_slot") from exc
    return int(res)


async def redis_allow(rc, key: str, limit: int, window: int):
    """
    Per-route throttling, counting every request.
    Returns (allowed: bool, remaining: int, reset_ts: int)
    """
    pexpire_ms = int(window * 1000)

    try:
        res = await run_script(rc, LUA_FIXED_WINDOW_INCR_AND_PEXPIRE, [key], [pexpire_ms])
    except RedisError as exc:
        logger.warning("rate_limit.redis_error", extra={"error": str(exc), "fail_open": FAIL_OPEN})
        now = int(time.time())
        if FAIL_OPEN:
            return True, max(0, limit - 1), now + window
        return False, 0, now + window

    count = int(res[0])
    ttl_ms = int(res[1])
    now = int(time.time())
    reset_ts = now + (ttl_ms // 1000) if ttl_ms > 0 else now + window
    allowed = count <= limit
    remaining = max(0, limit - count) if allowed else 0
    return allowed, remaining, reset_ts
