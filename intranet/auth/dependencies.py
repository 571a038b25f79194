from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from intranet.auth.constants import COOKIE_NAME, SESSION_HEADER_NAME, logger
from intranet.auth.services import OtpAuthenticator
from intranet.db.dependencies import get_session
from intranet.schema.full_schema import AdminRole, AdminUser


def session_token_plain(request: Request) -> Optional[str]:
    # cookie for the browser app, header for scripts and tests
    return request.cookies.get(COOKIE_NAME) or request.headers.get(SESSION_HEADER_NAME)


def get_otp_authenticator(request: Request, session=Depends(get_session)) -> OtpAuthenticator:
    return OtpAuthenticator(session, request.app.state.sms_dispatcher)


def current_admin(request: Request) -> AdminUser:
    admin = getattr(request.state, "admin", None)
    if admin is None:
        logger.warning("auth.admin.missing", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return admin


def require_superadmin(admin: AdminUser = Depends(current_admin)) -> AdminUser:
    if admin.role != AdminRole.SUPERADMIN.value:
        logger.warning("auth.admin.forbidden", extra={"admin_public_id": str(admin.public_id)})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Superadmin role required")
    return admin
