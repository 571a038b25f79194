import hashlib
import hmac
from fastapi import Request
from redis.exceptions import NoScriptError, ResponseError
from intranet.config.admin_config import admin_config
from intranet.config.settings import config_settings

SOURCE_HASH_LENGTH = 32


def _script_sha(script: str) -> str:
    return hashlib.sha1(script.encode()).hexdigest()


async def run_script(rc, script: str, keys: list, args: list):
    """
    EVALSHA against the script cache, loading the script with EVAL the first
    time a redis instance has not seen it.
    """
    try:
        return await rc.evalsha(_script_sha(script), len(keys), *keys, *args)
    except ResponseError as exc:
        if not isinstance(exc, NoScriptError) and "NOSCRIPT" not in str(exc).upper():
            raise
    return await rc.eval(script, len(keys), *keys, *args)


def client_ip(request: Request) -> str:
    # X-Forwarded-For: trust only when behind the proxy
    if admin_config.TRUST_FORWARDED_FOR:
        xff = request.headers.get("X-Forwarded-For")
        if xff:
            forwarded = xff.split(",")[0].strip()
            if forwarded:
                return forwarded
    return request.client.host if request.client else "unknown"


def hash_source(signal: str, salt: str = config_settings.IP_HASH_SALT) -> str:
    """One-way keyed hash of a client signal (ip). The raw signal goes no further than this call."""
    digest = hmac.new(salt.encode(), signal.encode(), hashlib.sha256).hexdigest()
    return digest[:SOURCE_HASH_LENGTH]
