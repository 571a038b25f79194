import redis.asyncio as redis
from intranet.config.settings import config_settings

REDIS_SOCKET_TIMEOUT = 0.5   # seconds

def make_redis_client(url: str = config_settings.REDIS_URL) -> redis.Redis:
    return redis.Redis.from_url(url, decode_responses=False,
                                socket_timeout=REDIS_SOCKET_TIMEOUT, socket_connect_timeout=REDIS_SOCKET_TIMEOUT)

redis_client = make_redis_client()
