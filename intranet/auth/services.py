import math
from datetime import timedelta
from typing import Callable, Optional
from intranet.auth.constants import OTP_SMS_TEMPLATE, SESSION_TTL_SECONDS, logger
from intranet.auth.models import CodeRequestResult, CodeStatus, CodeVerifyResult, OtpFailure
from intranet.auth.repository import (active_admin_by_phone, consume_code, create_session_row, decrement_attempts,
                                      delete_expired_code, get_code, live_session_with_admin, revoke_session,
                                      touch_last_login, upsert_code_if_cooled)
from intranet.auth.utils import generate_code, hash_code, hash_token, make_session_token_plain, normalize_phone, verify_code_hash
from intranet.common.utils import Clock, as_utc, now
from intranet.config.settings import Settings, config_settings
from intranet.db.utils import db_guard
from intranet.notifications.sms import SmsDispatcher
from intranet.schema.full_schema import AdminUser


class OtpAuthenticator:
    """
    Issues and verifies one-time codes for registered admins.

    At most one live code exists per phone; requesting again inside the cooldown
    is refused, requesting after it replaces the previous code. Every decision
    (issue, decrement, consume) is a single conditional statement so concurrent
    requests for the same phone cannot both win.
    """

    def __init__(self, session, dispatcher: SmsDispatcher, clock: Clock = now,
                 settings: Settings = config_settings, code_factory: Optional[Callable[[int], str]] = None):
        self.session = session
        self.dispatcher = dispatcher
        self.clock = clock
        self.settings = settings
        self.code_factory = code_factory or generate_code

    @db_guard("otp.request")
    async def request_code(self, phone: str) -> CodeRequestResult:
        canonical = normalize_phone(phone)
        if canonical is None:
            logger.info("otp.request.invalid_phone")
            return CodeRequestResult(ok=False, failure=OtpFailure.INVALID_PHONE)

        admin = await active_admin_by_phone(self.session, canonical)
        if admin is None:
            logger.info("otp.request.not_registered", extra={"phone": canonical})
            return CodeRequestResult(ok=False, failure=OtpFailure.NOT_REGISTERED)

        issued_at = self.clock()
        cooldown = self.settings.OTP_COOLDOWN_SECONDS
        expires_at = issued_at + timedelta(minutes=self.settings.OTP_EXPIRY_MINUTES)
        code = self.code_factory(self.settings.OTP_LENGTH)

        code_id = await upsert_code_if_cooled(
            self.session,
            phone=canonical,
            code_hash=hash_code(canonical, code),
            attempts=self.settings.OTP_MAX_ATTEMPTS,
            issued_at=issued_at,
            expires_at=expires_at,
            cooldown_cutoff=issued_at - timedelta(seconds=cooldown),
        )
        if code_id is None:
            await self.session.rollback()
            existing = await get_code(self.session, canonical)
            retry_after = cooldown
            if existing is not None:
                elapsed = (issued_at - as_utc(existing.issued_at)).total_seconds()
                retry_after = max(1, math.ceil(cooldown - elapsed))
            logger.info("otp.request.too_soon", extra={"phone": canonical, "retry_after": retry_after})
            return CodeRequestResult(ok=False, failure=OtpFailure.TOO_SOON, phone=canonical,
                                     retry_after_seconds=retry_after)

        await self.session.commit()

        # delivery is not awaited; a failed send leaves the code live until expiry or resend
        message = OTP_SMS_TEMPLATE.format(code=code, minutes=self.settings.OTP_EXPIRY_MINUTES)
        self.dispatcher.dispatch(canonical, message, event="otp")

        logger.info("otp.request.issued", extra={"phone": canonical})
        return CodeRequestResult(ok=True, phone=canonical, expires_at=expires_at)

    @db_guard("otp.verify")
    async def verify_code(self, phone: str, code: str) -> CodeVerifyResult:
        canonical = normalize_phone(phone)
        if canonical is None:
            return CodeVerifyResult(ok=False, failure=OtpFailure.INVALID_PHONE)

        at = self.clock()
        row = await get_code(self.session, canonical)
        if row is None:
            logger.info("otp.verify.expired", extra={"phone": canonical, "reason": "no_code"})
            return CodeVerifyResult(ok=False, failure=OtpFailure.EXPIRED, phone=canonical)

        if as_utc(row.expires_at) <= at:
            await delete_expired_code(self.session, row.id, at)
            await self.session.commit()
            logger.info("otp.verify.expired", extra={"phone": canonical, "reason": "expired"})
            return CodeVerifyResult(ok=False, failure=OtpFailure.EXPIRED, phone=canonical)

        if row.attempts_remaining <= 0:
            logger.info("otp.verify.exhausted", extra={"phone": canonical})
            return CodeVerifyResult(ok=False, failure=OtpFailure.EXHAUSTED, phone=canonical, attempts_remaining=0)

        code_id, code_hash = row.id, row.code_hash
        if verify_code_hash(canonical, (code or "").strip(), code_hash):
            consumed = await consume_code(self.session, code_id, code_hash, at)
            await self.session.commit()
            if consumed:
                logger.info("otp.verify.success", extra={"phone": canonical})
                return CodeVerifyResult(ok=True, phone=canonical)
            return await self._lost_race(canonical, code_id, code_hash)

        remaining = await decrement_attempts(self.session, code_id, code_hash)
        await self.session.commit()
        if remaining is None:
            return await self._lost_race(canonical, code_id, code_hash)
        if remaining == 0:
            logger.warning("otp.verify.exhausted", extra={"phone": canonical})
            return CodeVerifyResult(ok=False, failure=OtpFailure.EXHAUSTED, phone=canonical, attempts_remaining=0)

        logger.info("otp.verify.mismatch", extra={"phone": canonical, "attempts_remaining": remaining})
        return CodeVerifyResult(ok=False, failure=OtpFailure.MISMATCH, phone=canonical, attempts_remaining=remaining)

    async def _lost_race(self, canonical: str, code_id: int, code_hash: str) -> CodeVerifyResult:
        # the checked code was spent, consumed, expired or replaced between the read and the write
        current = await get_code(self.session, canonical)
        if (current is not None and current.id == code_id and current.code_hash == code_hash
                and current.attempts_remaining <= 0):
            logger.warning("otp.verify.exhausted", extra={"phone": canonical})
            return CodeVerifyResult(ok=False, failure=OtpFailure.EXHAUSTED, phone=canonical, attempts_remaining=0)
        logger.info("otp.verify.expired", extra={"phone": canonical, "reason": "superseded"})
        return CodeVerifyResult(ok=False, failure=OtpFailure.EXPIRED, phone=canonical)

    @db_guard("otp.status")
    async def code_status(self, phone: str) -> CodeStatus:
        canonical = normalize_phone(phone)
        if canonical is None:
            return CodeStatus(has_active_code=False, can_resend=False)

        at = self.clock()
        row = await get_code(self.session, canonical)
        if row is None or as_utc(row.expires_at) <= at:
            return CodeStatus(has_active_code=False, can_resend=True)

        elapsed = (at - as_utc(row.issued_at)).total_seconds()
        cooldown_left = max(0, math.ceil(self.settings.OTP_COOLDOWN_SECONDS - elapsed))
        return CodeStatus(
            has_active_code=row.attempts_remaining > 0,
            can_resend=cooldown_left == 0,
            cooldown_remaining_seconds=cooldown_left,
            expires_at=as_utc(row.expires_at),
            attempts_remaining=row.attempts_remaining,
        )


@db_guard("session.create")
async def create_admin_session(session, phone: str, clock: Clock = now):
    """
    Opens a session for the admin owning a freshly verified phone.
    Returns (admin, plain_token, session_row) or None when the admin was removed or deactivated meanwhile.
    """
    admin = await active_admin_by_phone(session, phone)
    if admin is None:
        logger.warning("session.create.admin_inactive", extra={"phone": phone})
        return None

    issued_at = clock()
    token_plain = make_session_token_plain()
    row = await create_session_row(
        session,
        admin=admin,
        token_hash=hash_token(token_plain),
        issued_at=issued_at,
        expires_at=issued_at + timedelta(seconds=SESSION_TTL_SECONDS),
    )
    await touch_last_login(session, admin.id, issued_at)
    await session.commit()
    await session.refresh(admin)

    logger.info("session.created", extra={"admin_public_id": str(admin.public_id), "session_public_id": str(row.public_id)})
    return admin, token_plain, row


@db_guard("session.resolve")
async def resolve_admin_session(session, token_plain: str, clock: Clock = now) -> Optional[AdminUser]:
    if not token_plain:
        return None
    found = await live_session_with_admin(session, hash_token(token_plain), clock())
    if not found:
        return None
    _, admin = found
    return admin


@db_guard("session.revoke")
async def logout_admin_session(session, token_plain: str, clock: Clock = now) -> Optional[int]:
    admin_id = await revoke_session(session, hash_token(token_plain), clock())
    await session.commit()
    if admin_id:
        logger.info("session.revoked", extra={"admin_user_id": admin_id})
    return admin_id
