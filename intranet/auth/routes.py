from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from intranet.admin.repository import log_activity
from intranet.admin.utils import actor_ip, admin_out
from intranet.auth.constants import COOKIE_NAME, SESSION_TTL_SECONDS, logger
from intranet.auth.dependencies import get_otp_authenticator, session_token_plain
from intranet.auth.models import OtpFailure, OtpRequestIn, OtpVerifyIn
from intranet.auth.services import OtpAuthenticator, create_admin_session, logout_admin_session
from intranet.common.utils import outcome_error, success_response
from intranet.config.admin_config import admin_config
from intranet.config.settings import config_settings
from intranet.db.dependencies import get_session
from intranet.db.utils import db_guard
from intranet.rate_limiting.dependencies import rate_limit_dependency
from intranet.schema.full_schema import ActivityAction

current_env = admin_config.ENV
secure_flag = False if current_env == "dev" else True

auth_router = APIRouter()

otp_throttle = rate_limit_dependency(config_settings.OTP_ROUTE_LIMIT, config_settings.OTP_ROUTE_WINDOW, route_key="otp")

FAILURE_STATUS = {
    OtpFailure.INVALID_PHONE: (status.HTTP_400_BAD_REQUEST, "Please enter a valid Ghana phone number"),
    OtpFailure.NOT_REGISTERED: (status.HTTP_404_NOT_FOUND, "This phone number is not registered as an admin"),
    OtpFailure.TOO_SOON: (status.HTTP_429_TOO_MANY_REQUESTS, "Please wait before requesting a new code"),
    OtpFailure.EXPIRED: (status.HTTP_401_UNAUTHORIZED, "Code expired or not found. Please request a new one"),
    OtpFailure.MISMATCH: (status.HTTP_401_UNAUTHORIZED, "Invalid code"),
    OtpFailure.EXHAUSTED: (status.HTTP_429_TOO_MANY_REQUESTS, "Too many failed attempts. Please request a new code"),
}


def otp_failure_response(result):
    status_code, message = FAILURE_STATUS[result.failure]
    headers, details = None, {}
    if result.failure == OtpFailure.TOO_SOON:
        headers = {"Retry-After": str(result.retry_after_seconds)}
        details["retry_after_seconds"] = result.retry_after_seconds
    if result.failure in (OtpFailure.MISMATCH, OtpFailure.EXHAUSTED):
        details["attempts_remaining"] = result.attempts_remaining
    return outcome_error(result.failure.value.upper(), message, status_code, headers=headers, **details)


@auth_router.post("/otp/request", dependencies=[Depends(otp_throttle)])
async def request_otp(payload: OtpRequestIn, otp: OtpAuthenticator = Depends(get_otp_authenticator)):

    result = await otp.request_code(payload.phone)
    if not result.ok:
        return otp_failure_response(result)

    return success_response({"message": "Verification code sent", "expires_at": result.expires_at})


@auth_router.post("/otp/verify", dependencies=[Depends(otp_throttle)])
async def verify_otp(request: Request, payload: OtpVerifyIn, otp: OtpAuthenticator = Depends(get_otp_authenticator),
                     session: AsyncSession = Depends(get_session)):

    result = await otp.verify_code(payload.phone, payload.code)
    if not result.ok:
        return otp_failure_response(result)

    opened = await create_admin_session(session, result.phone)
    if opened is None:
        return outcome_error("ACCOUNT_INACTIVE", "Account is not active", status.HTTP_403_FORBIDDEN)
    admin, token_plain, _ = opened

    await _record(session, admin.id, ActivityAction.LOGIN, request)

    response = success_response({"message": "Login successful", "admin": admin_out(admin)})
    response.set_cookie(COOKIE_NAME, token_plain, httponly=True, secure=secure_flag, path="/",
                        max_age=SESSION_TTL_SECONDS, samesite="Lax")

    logger.info("login.success", extra={"admin_public_id": str(admin.public_id)})
    return response


@auth_router.get("/otp/status")
async def otp_status(phone: str = Query(..., min_length=1, max_length=32),
                     otp: OtpAuthenticator = Depends(get_otp_authenticator)):
    result = await otp.code_status(phone)
    return success_response(result.model_dump())


@auth_router.post("/logout")
async def logout(request: Request, session: AsyncSession = Depends(get_session)):

    token = session_token_plain(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not logged in")

    admin_id = await logout_admin_session(session, token)
    if admin_id:
        await _record(session, admin_id, ActivityAction.LOGOUT, request)

    res = success_response({"message": "Logged out successfully."}, 200)
    res.delete_cookie(key=COOKIE_NAME, path="/")

    logger.info("logout.success", extra={"admin_user_id": admin_id})
    return res


@db_guard("activity.write")
async def _record(session, admin_id, action, request):
    await log_activity(session, admin_id=admin_id, action=action.value, resource="auth", ip=actor_ip(request))
    await session.commit()
