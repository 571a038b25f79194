from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from intranet.admin.constants import logger
from intranet.admin.models import AdminCreateIn
from intranet.admin.repository import admin_by_phone, admin_by_public_id, log_activity, set_admin_active
from intranet.admin.utils import normalize_email_address
from intranet.auth.repository import revoke_admin_sessions
from intranet.auth.utils import normalize_phone
from intranet.common.utils import Clock, now
from intranet.db.utils import db_guard
from intranet.schema.full_schema import ActivityAction, AdminUser


@db_guard("admin.create")
async def create_admin(session, payload: AdminCreateIn, actor: AdminUser, ip=None) -> AdminUser:
    phone = normalize_phone(payload.phone)
    if phone is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid phone number")

    email = None
    if payload.email:
        try:
            email = normalize_email_address(payload.email)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid email: {e}")

    if await admin_by_phone(session, phone):
        logger.warning("admin.duplicate", extra={"phone": phone})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An admin with this phone already exists")

    admin = AdminUser(phone=phone, name=payload.name.strip(), email=email,
                      role=payload.role.value, department=payload.department)
    session.add(admin)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        logger.warning("admin.create.integrity_error", extra={"phone": phone})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An admin with this phone already exists")

    await log_activity(session, admin_id=actor.id, action=ActivityAction.CREATE.value, resource="admin_user",
                       resource_id=str(admin.public_id), details={"role": admin.role}, ip=ip)
    await session.commit()
    await session.refresh(admin)

    logger.info("admin.created", extra={"admin_public_id": str(admin.public_id), "actor": str(actor.public_id)})
    return admin


@db_guard("admin.set_active")
async def change_admin_active(session, public_id, is_active: bool, actor: AdminUser, ip=None, clock: Clock = now) -> AdminUser:
    admin = await admin_by_public_id(session, public_id)
    if admin is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    if admin.id == actor.id and not is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")

    await set_admin_active(session, admin.id, is_active)
    revoked = 0
    if not is_active:
        revoked = await revoke_admin_sessions(session, admin.id, clock())

    action = ActivityAction.ACTIVATE if is_active else ActivityAction.DEACTIVATE
    await log_activity(session, admin_id=actor.id, action=action.value, resource="admin_user",
                       resource_id=str(admin.public_id), ip=ip)
    await session.commit()
    await session.refresh(admin)

    logger.info(f"admin.{action.value}d", extra={"admin_public_id": str(admin.public_id), "sessions_revoked": revoked})
    return admin
