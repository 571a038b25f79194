import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from intranet.admin.utils import actor_ip
from intranet.auth.dependencies import current_admin
from intranet.common.utils import outcome_error, page_meta, success_response
from intranet.db.dependencies import get_session
from intranet.db.utils import db_guard
from intranet.rate_limiting.dependencies import get_redis, source_hash
from intranet.schema.full_schema import AdminUser, SuggestionStatus
from intranet.suggestions.constants import MAX_CATEGORY_ID, SUGGESTION_PAGE_LIMIT, logger
from intranet.suggestions.models import (CategoryCreateIn, CategoryUpdateIn, NotesIn, StatusUpdateIn,
                                         SubmissionFailure, SuggestionIn)
from intranet.suggestions.repository import fetch_suggestion, fetch_suggestions, list_categories
from intranet.suggestions.services import (SuggestionGate, add_notes, change_status, create_category,
                                           delete_category, remove_suggestion, suggestion_stats, update_category)

suggestions_router = APIRouter()
suggestions_admin_router = APIRouter()
categories_admin_router = APIRouter()

FAILURE_STATUS = {
    SubmissionFailure.TOO_SHORT: (status.HTTP_400_BAD_REQUEST, "Suggestion is too short"),
    SubmissionFailure.TOO_LONG: (status.HTTP_400_BAD_REQUEST, "Suggestion is too long"),
    SubmissionFailure.INVALID_CATEGORY: (status.HTTP_400_BAD_REQUEST, "Please select a valid category"),
    SubmissionFailure.RATE_LIMITED: (status.HTTP_429_TOO_MANY_REQUESTS,
                                     "You have submitted too many suggestions. Please try again later"),
}


def get_gate(request: Request, session: AsyncSession = Depends(get_session)) -> SuggestionGate:
    return SuggestionGate(session, get_redis(request))


def category_out(c, full: bool = False) -> dict:
    out = {"id": c.id, "name": c.name, "slug": c.slug, "description": c.description}
    if full:
        out.update({"is_active": c.is_active, "display_order": c.display_order,
                    "created_at": c.created_at, "updated_at": c.updated_at})
    return out


def suggestion_out(row) -> dict:
    s, category, reviewer_name = row
    return {
        "public_id": str(s.public_id),
        "content": s.content,
        "category": {"id": category.id, "name": category.name, "slug": category.slug},
        "status": s.status,
        "admin_notes": s.admin_notes,
        "reviewed_by": reviewer_name,
        "reviewed_at": s.reviewed_at,
        "created_at": s.created_at,
        "updated_at": s.updated_at,
    }


# ---------- public ----------

@suggestions_router.get("/categories")
@db_guard("category.list")
async def get_active_categories(session: AsyncSession = Depends(get_session)):
    categories = await list_categories(session, only_active=True)
    return success_response({"items": [category_out(c) for c in categories]})


@suggestions_router.get("/rate-limit")
async def get_rate_limit(request: Request, gate: SuggestionGate = Depends(get_gate)):
    result = await gate.check_rate_limit(source_hash(request))
    return success_response(result.model_dump())


@suggestions_router.post("", status_code=status.HTTP_201_CREATED)
async def submit_suggestion(request: Request, payload: SuggestionIn, gate: SuggestionGate = Depends(get_gate)):

    result = await gate.submit(payload.content, payload.category_id, source_hash(request), honeypot=payload.website)

    if not result.ok:
        status_code, message = FAILURE_STATUS[result.failure]
        headers, details = None, {}
        if result.failure == SubmissionFailure.RATE_LIMITED:
            headers = {"Retry-After": str(result.retry_after_seconds)}
            details = {"remaining": 0, "reset_at": result.reset_at}
        return outcome_error(result.failure.value.upper(), message, status_code, headers=headers, **details)

    # honeypot hits get the same body, minus an id nobody could look up anyway
    return success_response({"message": "Thank you! Your suggestion has been submitted anonymously.",
                             "remaining": result.remaining}, status_code=status.HTTP_201_CREATED)


# ---------- admin: suggestions ----------

@suggestions_admin_router.get("")
@db_guard("suggestion.list")
async def get_suggestions(
    status_filter: Optional[SuggestionStatus] = Query(None, alias="status"),
    category: Optional[int] = Query(None, ge=1, le=MAX_CATEGORY_ID),
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(SUGGESTION_PAGE_LIMIT, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    rows, total = await fetch_suggestions(session, status=status_filter.value if status_filter else None,
                                          category_id=category, search=search, page=page, limit=limit)
    return success_response({"items": [suggestion_out(r) for r in rows], "pagination": page_meta(page, limit, total)})


@suggestions_admin_router.get("/stats")
async def get_stats(session: AsyncSession = Depends(get_session)):
    return success_response(await suggestion_stats(session))


@suggestions_admin_router.get("/{public_id}")
@db_guard("suggestion.read")
async def get_suggestion(public_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    row = await fetch_suggestion(session, public_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Suggestion not found")
    return success_response({"suggestion": suggestion_out(row)})


@suggestions_admin_router.patch("/{public_id}/status")
async def patch_status(request: Request, public_id: uuid.UUID, payload: StatusUpdateIn,
                       admin: AdminUser = Depends(current_admin), session: AsyncSession = Depends(get_session)):
    row = await change_status(session, public_id, payload.status, payload.notes, admin, ip=actor_ip(request))
    return success_response({"suggestion": suggestion_out(row)})


@suggestions_admin_router.patch("/{public_id}/notes")
async def patch_notes(request: Request, public_id: uuid.UUID, payload: NotesIn,
                      admin: AdminUser = Depends(current_admin), session: AsyncSession = Depends(get_session)):
    row = await add_notes(session, public_id, payload.notes, admin, ip=actor_ip(request))
    return success_response({"suggestion": suggestion_out(row)})


@suggestions_admin_router.delete("/{public_id}")
async def delete_suggestion(request: Request, public_id: uuid.UUID,
                            admin: AdminUser = Depends(current_admin), session: AsyncSession = Depends(get_session)):
    await remove_suggestion(session, public_id, admin, ip=actor_ip(request))
    return success_response({"message": "Suggestion deleted"})


# ---------- admin: categories ----------

@categories_admin_router.get("")
@db_guard("category.list")
async def get_all_categories(session: AsyncSession = Depends(get_session)):
    categories = await list_categories(session, only_active=False)
    return success_response({"items": [category_out(c, full=True) for c in categories]})


@categories_admin_router.post("", status_code=status.HTTP_201_CREATED)
async def post_category(request: Request, payload: CategoryCreateIn,
                        admin: AdminUser = Depends(current_admin), session: AsyncSession = Depends(get_session)):
    category = await create_category(session, payload.name, payload.description, admin, ip=actor_ip(request))
    return success_response({"category": category_out(category, full=True)}, status_code=status.HTTP_201_CREATED)


@categories_admin_router.patch("/{category_id}")
async def patch_category(request: Request, payload: CategoryUpdateIn,
                         category_id: int = Path(..., ge=1, le=MAX_CATEGORY_ID),
                         admin: AdminUser = Depends(current_admin), session: AsyncSession = Depends(get_session)):
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None or k == "description"}
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")
    category = await update_category(session, category_id, changes, admin, ip=actor_ip(request))
    logger.info("category.updated", extra={"category_id": category_id, "fields": sorted(changes)})
    return success_response({"category": category_out(category, full=True)})


@categories_admin_router.delete("/{category_id}")
async def remove_category(request: Request, category_id: int = Path(..., ge=1, le=MAX_CATEGORY_ID),
                          admin: AdminUser = Depends(current_admin), session: AsyncSession = Depends(get_session)):
    await delete_category(session, category_id, admin, ip=actor_ip(request))
    return success_response({"message": "Category deleted"})
