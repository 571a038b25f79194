import asyncio
import functools
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from intranet.common.custom_exceptions import StoreUnavailable


def _normalize_db_url(url: str | None) -> str | None:
    # Managed postgres often hands out "postgres://..." and asyncpg/SQLAlchemy needs "postgresql+asyncpg://..."
    if not url:
        return None
    if url.startswith("postgres://",):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        url = url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def dialect_name(session) -> str:
    return session.bind.dialect.name


def is_store_failure(exc: BaseException) -> bool:
    if isinstance(exc, asyncio.CancelledError):
        return False
    if isinstance(exc, (TimeoutError, ConnectionError, OSError, OperationalError, InterfaceError)):
        return True
    if isinstance(exc, DBAPIError):
        # dropped connections surface as DBAPIError with connection_invalidated
        if getattr(exc, "connection_invalidated", False):
            return True
        orig = getattr(exc, "orig", None)
        if orig is not None:
            name = type(orig).__name__.lower()
            if any(k in name for k in ("timeout", "connection", "brokenpipe", "connectionrefused", "connectionreset")):
                return True
    return False


def db_guard(operation: str):
    """Turns unreachable-database errors raised inside the wrapped call into StoreUnavailable."""
    def deco(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            try:
                return await fn(*args, **kwargs)
            except StoreUnavailable:
                raise
            except Exception as exc:
                if is_store_failure(exc):
                    raise StoreUnavailable("database", operation) from exc
                raise
        return wrapper
    return deco
