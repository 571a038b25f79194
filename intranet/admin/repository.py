from typing import Any, Dict, Optional
from sqlalchemy import func, select, update
from intranet.schema.full_schema import ActivityLog, AdminUser


async def log_activity(session, *, admin_id: Optional[int], action: str, resource: str,
                       resource_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                       ip: Optional[str] = None) -> None:
    """Adds the entry to the caller's transaction; it lands with the action it describes."""
    session.add(ActivityLog(
        admin_user_id=admin_id,
        action=action,
        resource=resource,
        resource_id=resource_id,
        details=details,
        ip_address=ip,
    ))


async def list_activity(session, *, admin_id: Optional[int] = None, resource: Optional[str] = None,
                        action: Optional[str] = None, page: int = 1, limit: int = 50):
    conds = []
    if admin_id is not None:
        conds.append(ActivityLog.admin_user_id == admin_id)
    if resource:
        conds.append(ActivityLog.resource == resource)
    if action:
        conds.append(ActivityLog.action == action)

    total = (await session.execute(select(func.count(ActivityLog.id)).where(*conds))).scalar_one()

    stmt = (
        select(ActivityLog, AdminUser.name, AdminUser.public_id)
        .outerjoin(AdminUser, AdminUser.id == ActivityLog.admin_user_id)
        .where(*conds)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = (await session.execute(stmt)).all()
    return rows, total


async def list_admins(session):
    stmt = select(AdminUser).order_by(AdminUser.created_at.desc(), AdminUser.id.desc())
    return (await session.execute(stmt)).scalars().all()


async def admin_by_public_id(session, public_id) -> Optional[AdminUser]:
    stmt = select(AdminUser).where(AdminUser.public_id == public_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def admin_id_by_public_id(session, public_id) -> Optional[int]:
    stmt = select(AdminUser.id).where(AdminUser.public_id == public_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def admin_by_phone(session, phone: str) -> Optional[AdminUser]:
    stmt = select(AdminUser).where(AdminUser.phone == phone)
    return (await session.execute(stmt)).scalar_one_or_none()


async def set_admin_active(session, admin_id: int, is_active: bool) -> None:
    await session.execute(update(AdminUser).where(AdminUser.id == admin_id).values(is_active=is_active))
