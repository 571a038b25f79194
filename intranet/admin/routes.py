import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from intranet.admin.constants import ACTIVITY_PAGE_LIMIT, logger
from intranet.admin.models import AdminActiveIn, AdminCreateIn
from intranet.admin.repository import admin_id_by_public_id, list_activity, list_admins
from intranet.admin.services import change_admin_active, create_admin
from intranet.admin.utils import actor_ip, admin_out
from intranet.auth.dependencies import current_admin, require_superadmin
from intranet.common.utils import page_meta, success_response
from intranet.db.dependencies import get_session
from intranet.db.utils import db_guard
from intranet.schema.full_schema import AdminUser

admin_home_router = APIRouter()
admin_users_router = APIRouter()
activity_router = APIRouter()


@admin_home_router.get("/me")
async def get_me(admin: AdminUser = Depends(current_admin)):
    return success_response({"admin": admin_out(admin)})


@admin_users_router.get("")
@db_guard("admin.list")
async def get_admins(_: AdminUser = Depends(require_superadmin), session: AsyncSession = Depends(get_session)):
    admins = await list_admins(session)
    return success_response({"items": [admin_out(a) for a in admins]})


@admin_users_router.post("", status_code=status.HTTP_201_CREATED)
async def post_admin(request: Request, payload: AdminCreateIn, actor: AdminUser = Depends(require_superadmin),
                     session: AsyncSession = Depends(get_session)):
    logger.info("admin.create.attempt", extra={"actor": str(actor.public_id)})
    admin = await create_admin(session, payload, actor, ip=actor_ip(request))
    return success_response({"admin": admin_out(admin)}, status_code=status.HTTP_201_CREATED)


@admin_users_router.patch("/{public_id}/active")
async def patch_admin_active(request: Request, public_id: uuid.UUID, payload: AdminActiveIn,
                             actor: AdminUser = Depends(require_superadmin),
                             session: AsyncSession = Depends(get_session)):
    admin = await change_admin_active(session, public_id, payload.is_active, actor, ip=actor_ip(request))
    return success_response({"admin": admin_out(admin)})


@activity_router.get("")
@db_guard("activity.list")
async def get_activity(
    _: AdminUser = Depends(require_superadmin),
    admin_public_id: Optional[uuid.UUID] = Query(None),
    resource: Optional[str] = Query(None, max_length=64),
    action: Optional[str] = Query(None, max_length=16),
    page: int = Query(1, ge=1),
    limit: int = Query(ACTIVITY_PAGE_LIMIT, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
):
    admin_id = None
    if admin_public_id is not None:
        admin_id = await admin_id_by_public_id(session, admin_public_id)
        if admin_id is None:
            return success_response({"items": [], "pagination": page_meta(page, limit, 0)})

    rows, total = await list_activity(session, admin_id=admin_id, resource=resource, action=action,
                                      page=page, limit=limit)
    items = []
    for log, admin_name, admin_pid in rows:
        items.append({
            "id": log.id,
            "admin_public_id": str(admin_pid) if admin_pid else None,
            "admin_name": admin_name,
            "action": log.action,
            "resource": log.resource,
            "resource_id": log.resource_id,
            "details": log.details,
            "ip_address": log.ip_address,
            "created_at": log.created_at,
        })
    return success_response({"items": items, "pagination": page_meta(page, limit, total)})
