from datetime import datetime
from typing import Optional
from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from intranet.db.utils import dialect_name
from intranet.schema.full_schema import AdminSession, AdminUser, OtpCode


def _insert_for(session):
    if dialect_name(session) == "postgresql":
        return pg_insert
    return sqlite_insert


async def active_admin_by_phone(session, phone: str) -> Optional[AdminUser]:
    stmt = select(AdminUser).where(AdminUser.phone == phone, AdminUser.is_active.is_(True))
    return (await session.execute(stmt)).scalar_one_or_none()


async def upsert_code_if_cooled(session, *, phone: str, code_hash: str, attempts: int,
                                issued_at: datetime, expires_at: datetime, cooldown_cutoff: datetime) -> Optional[int]:
    """
    Single statement issue: inserts a fresh row, or overwrites the existing one
    only when it was issued at or before cooldown_cutoff.
    Returns the row id, or None when the existing code is still inside its cooldown.
    """
    ins = _insert_for(session)(OtpCode).values(
        phone=phone,
        code_hash=code_hash,
        attempts_remaining=attempts,
        issued_at=issued_at,
        expires_at=expires_at,
    )
    stmt = ins.on_conflict_do_update(
        index_elements=["phone"],
        set_={
            "code_hash": ins.excluded.code_hash,
            "attempts_remaining": ins.excluded.attempts_remaining,
            "issued_at": ins.excluded.issued_at,
            "expires_at": ins.excluded.expires_at,
        },
        where=OtpCode.issued_at <= cooldown_cutoff,
    ).returning(OtpCode.id)
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def get_code(session, phone: str) -> Optional[OtpCode]:
    # the row may be rewritten by another request at any time; never trust the identity map copy
    stmt = select(OtpCode).where(OtpCode.phone == phone).execution_options(populate_existing=True)
    return (await session.execute(stmt)).scalar_one_or_none()


async def delete_expired_code(session, code_id: int, at: datetime) -> None:
    stmt = (
        delete(OtpCode)
        .where(OtpCode.id == code_id, OtpCode.expires_at <= at)
        .execution_options(synchronize_session=False)
    )
    await session.execute(stmt)


async def consume_code(session, code_id: int, code_hash: str, at: datetime) -> bool:
    """
    Deletes the row only while it still holds the checked code and is live;
    the delete is the single point of success. A code reissued in between
    changes code_hash, so the stale code matches nothing.
    """
    stmt = (
        delete(OtpCode)
        .where(OtpCode.id == code_id, OtpCode.code_hash == code_hash,
               OtpCode.attempts_remaining > 0, OtpCode.expires_at > at)
        .returning(OtpCode.id)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.scalar_one_or_none() is not None


async def decrement_attempts(session, code_id: int, code_hash: str) -> Optional[int]:
    """Returns attempts left after the decrement, None when the guessed-at code is gone or spent."""
    stmt = (
        update(OtpCode)
        .where(OtpCode.id == code_id, OtpCode.code_hash == code_hash, OtpCode.attempts_remaining > 0)
        .values(attempts_remaining=OtpCode.attempts_remaining - 1)
        .returning(OtpCode.attempts_remaining)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def purge_expired_codes(session, at: datetime) -> int:
    stmt = (
        delete(OtpCode)
        .where(OtpCode.expires_at <= at)
        .returning(OtpCode.id)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return len(res.scalars().all())


async def touch_last_login(session, admin_id: int, at: datetime) -> None:
    await session.execute(update(AdminUser).where(AdminUser.id == admin_id).values(last_login_at=at))


async def create_session_row(session, *, admin: AdminUser, token_hash: str,
                             issued_at: datetime, expires_at: datetime) -> AdminSession:
    row = AdminSession(
        session_token_hash=token_hash,
        admin_user_id=admin.id,
        role=admin.role,
        issued_at=issued_at,
        expires_at=expires_at,
    )
    session.add(row)
    await session.flush()
    return row


async def live_session_with_admin(session, token_hash: str, at: datetime):
    stmt = (
        select(AdminSession, AdminUser)
        .join(AdminUser, AdminUser.id == AdminSession.admin_user_id)
        .where(
            AdminSession.session_token_hash == token_hash,
            AdminSession.revoked_at.is_(None),
            AdminSession.expires_at > at,
            AdminUser.is_active.is_(True),
        )
    )
    return (await session.execute(stmt)).first()


async def revoke_session(session, token_hash: str, at: datetime) -> Optional[int]:
    stmt = (
        update(AdminSession)
        .where(AdminSession.session_token_hash == token_hash, AdminSession.revoked_at.is_(None))
        .values(revoked_at=at)
        .returning(AdminSession.admin_user_id)
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def revoke_admin_sessions(session, admin_id: int, at: datetime) -> int:
    stmt = (
        update(AdminSession)
        .where(AdminSession.admin_user_id == admin_id, AdminSession.revoked_at.is_(None))
        .values(revoked_at=at)
        .returning(AdminSession.id)
    )
    res = await session.execute(stmt)
    return len(res.scalars().all())
