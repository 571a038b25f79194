from typing import Sequence
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from intranet.auth.dependencies import session_token_plain
from intranet.auth.services import resolve_admin_session
from intranet.common.constants import request_id_ctx
from intranet.common.custom_exceptions import StoreUnavailable
from intranet.common.utils import build_error, json_error
from intranet.middlewares.constants import logger


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Requires a live admin session for every request under the protected prefixes."""

    def __init__(self, app, *, paths: Sequence[str]):
        super().__init__(app)
        self.paths = tuple(paths)

    async def dispatch(self, request: Request, call_next):

        if not request.url.path.startswith(self.paths):
            return await call_next(request)

        token = session_token_plain(request)
        if not token:
            logger.warning("auth.middleware.failed", extra={
                "reason": "missing_session",
                "path": request.url.path,
                "method": request.method
            })
            payload = build_error(code="INVALID_AUTH", details={"message": "Authentication required"},
                                  request_id=request_id_ctx.get())
            return json_error(payload, status_code=status.HTTP_401_UNAUTHORIZED)

        try:
            async with request.app.state.session_maker() as session:
                admin = await resolve_admin_session(session, token)
        except StoreUnavailable as exc:
            # raised outside the routing layer, so the registered handlers never see it
            logger.error("auth.middleware.store_unavailable", extra={"path": request.url.path}, exc_info=exc.__cause__ or exc)
            payload = build_error(code="STORE_UNAVAILABLE",
                                  details={"message": "Service temporarily unavailable, please try again."},
                                  request_id=request_id_ctx.get())
            return json_error(payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        if admin is None:
            logger.warning("auth.middleware.failed", extra={
                "reason": "invalid_session",
                "path": request.url.path,
                "method": request.method
            })
            payload = build_error(code="INVALID_AUTH", details={"message": "Session expired or revoked"},
                                  request_id=request_id_ctx.get())
            return json_error(payload, status_code=status.HTTP_401_UNAUTHORIZED)

        request.state.admin = admin

        logger.debug("auth.middleware.success", extra={
            "admin_public_id": str(admin.public_id),
            "path": request.url.path
        })

        return await call_next(request)
