import math
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import HTTPException, status
from intranet.admin.repository import log_activity
from intranet.common.custom_exceptions import StoreUnavailable
from intranet.common.utils import Clock, now, slugify
from intranet.config.settings import Settings, config_settings
from intranet.db.utils import db_guard, is_store_failure
from intranet.rate_limiting.constants import SUGGESTION_RL_PREFIX
from intranet.rate_limiting.rate_limit_fixed_window import release_slot, reserve_slot, window_count, window_key, window_start
from intranet.schema.full_schema import ActivityAction, AdminUser, SuggestionCategory, SuggestionStatus
from intranet.suggestions.constants import logger
from intranet.suggestions.models import RateLimitStatus, SubmissionFailure, SubmissionResult
from intranet.suggestions.repository import (active_category, category_by_id, category_id_by_slug,
                                             count_since, count_suggestions_in_category, counts_by_status,
                                             delete_category_row, delete_suggestion_row, fetch_suggestion,
                                             insert_suggestion, next_display_order, suggestion_id_by_public_id,
                                             update_suggestion)


class SuggestionGate:
    """
    Public entry point of the suggestion box.

    The caller is identified only by a one-way source hash, used as the key of
    a fixed rate-limit window in redis. The hash never reaches the suggestion
    row or any log line.
    """

    def __init__(self, session, redis, clock: Clock = now, settings: Settings = config_settings):
        self.session = session
        self.redis = redis
        self.clock = clock
        self.settings = settings

    def _window(self, source_hash: str, at: datetime):
        window = self.settings.SUGGESTION_RATE_LIMIT_WINDOW
        start = window_start(at, window)
        reset_at = datetime.fromtimestamp(start + window, tz=timezone.utc)
        return window_key(SUGGESTION_RL_PREFIX, source_hash, start), reset_at

    async def check_rate_limit(self, source_hash: str) -> RateLimitStatus:
        limit = self.settings.SUGGESTION_RATE_LIMIT_MAX
        key, reset_at = self._window(source_hash, self.clock())
        count = await window_count(self.redis, key)
        return RateLimitStatus(allowed=count < limit, remaining=max(0, limit - count), limit=limit, reset_at=reset_at)

    async def submit(self, content: str, category_id, source_hash: str,
                     honeypot: Optional[str] = None) -> SubmissionResult:
        limit = self.settings.SUGGESTION_RATE_LIMIT_MAX

        if honeypot and honeypot.strip():
            # looks like success to the bot; nothing written, no slot taken
            logger.info("suggestion.honeypot")
            return SubmissionResult(ok=True, remaining=limit)

        text = (content or "").strip()
        if len(text) < self.settings.SUGGESTION_MIN_LENGTH:
            return SubmissionResult(ok=False, failure=SubmissionFailure.TOO_SHORT)
        if len(text) > self.settings.SUGGESTION_MAX_LENGTH:
            return SubmissionResult(ok=False, failure=SubmissionFailure.TOO_LONG)

        category = await self._category(category_id)
        if category is None:
            return SubmissionResult(ok=False, failure=SubmissionFailure.INVALID_CATEGORY)
        category_pk = category.id

        at = self.clock()
        key, reset_at = self._window(source_hash, at)
        allowed, count = await reserve_slot(self.redis, key, limit, self.settings.SUGGESTION_RATE_LIMIT_WINDOW)
        if not allowed:
            retry_after = max(1, math.ceil((reset_at - at).total_seconds()))
            logger.info("suggestion.rate_limited", extra={"retry_after": retry_after})
            return SubmissionResult(ok=False, failure=SubmissionFailure.RATE_LIMITED, remaining=0,
                                    reset_at=reset_at, retry_after_seconds=retry_after)

        try:
            row = await insert_suggestion(self.session, text, category_pk)
            public_id = str(row.public_id)
            await self.session.commit()
        except Exception as exc:
            # the slot and the row land together or not at all
            await self._release(key)
            if is_store_failure(exc):
                raise StoreUnavailable("database", "suggestion.submit") from exc
            raise

        logger.info("suggestion.submitted", extra={"suggestion_public_id": public_id, "category_id": category_pk})
        return SubmissionResult(ok=True, public_id=public_id, remaining=max(0, limit - count), reset_at=reset_at)

    @db_guard("suggestion.category")
    async def _category(self, category_id) -> Optional[SuggestionCategory]:
        return await active_category(self.session, category_id)

    async def _release(self, key: str) -> None:
        try:
            await release_slot(self.redis, key)
        except StoreUnavailable as exc:
            logger.error("suggestion.release_failed", exc_info=exc.__cause__ or exc)


# ---------- moderation (admin) ----------

async def _suggestion_pk(session, public_id) -> int:
    suggestion_id = await suggestion_id_by_public_id(session, public_id)
    if suggestion_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Suggestion not found")
    return suggestion_id


@db_guard("suggestion.status")
async def change_status(session, public_id, new_status: SuggestionStatus, notes: Optional[str],
                        actor: AdminUser, ip=None, clock: Clock = now):
    suggestion_id = await _suggestion_pk(session, public_id)
    values = {"status": new_status.value, "reviewed_by_id": actor.id, "reviewed_at": clock()}
    if notes is not None:
        values["admin_notes"] = notes
    await update_suggestion(session, suggestion_id, **values)
    await log_activity(session, admin_id=actor.id, action=ActivityAction.UPDATE.value, resource="suggestion",
                       resource_id=str(public_id), details={"status": new_status.value}, ip=ip)
    await session.commit()
    logger.info("suggestion.status_changed", extra={"suggestion_public_id": str(public_id), "status": new_status.value})
    return await fetch_suggestion(session, public_id)


@db_guard("suggestion.notes")
async def add_notes(session, public_id, notes: str, actor: AdminUser, ip=None, clock: Clock = now):
    suggestion_id = await _suggestion_pk(session, public_id)
    await update_suggestion(session, suggestion_id, admin_notes=notes, reviewed_by_id=actor.id, reviewed_at=clock())
    await log_activity(session, admin_id=actor.id, action=ActivityAction.UPDATE.value, resource="suggestion",
                       resource_id=str(public_id), details={"notes": True}, ip=ip)
    await session.commit()
    return await fetch_suggestion(session, public_id)


@db_guard("suggestion.delete")
async def remove_suggestion(session, public_id, actor: AdminUser, ip=None) -> None:
    suggestion_id = await _suggestion_pk(session, public_id)
    await delete_suggestion_row(session, suggestion_id)
    await log_activity(session, admin_id=actor.id, action=ActivityAction.DELETE.value, resource="suggestion",
                       resource_id=str(public_id), ip=ip)
    await session.commit()
    logger.info("suggestion.deleted", extra={"suggestion_public_id": str(public_id)})


@db_guard("suggestion.stats")
async def suggestion_stats(session, clock: Clock = now) -> dict:
    at = clock()
    by_status = await counts_by_status(session)
    stats = {s.value: by_status.get(s.value, 0) for s in SuggestionStatus}
    stats["total"] = sum(by_status.values())
    stats["this_week"] = await count_since(session, at - timedelta(days=7))
    stats["this_month"] = await count_since(session, at - timedelta(days=30))
    return stats


# ---------- categories (admin) ----------

def _slug_or_400(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name must contain letters or digits")
    return slug


@db_guard("category.create")
async def create_category(session, name: str, description: Optional[str], actor: AdminUser, ip=None) -> SuggestionCategory:
    slug = _slug_or_400(name)
    if await category_id_by_slug(session, slug):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A category with this name already exists")

    category = SuggestionCategory(name=name.strip(), slug=slug, description=description,
                                  display_order=await next_display_order(session))
    session.add(category)
    await session.flush()
    await log_activity(session, admin_id=actor.id, action=ActivityAction.CREATE.value, resource="suggestion_category",
                       resource_id=str(category.id), details={"name": category.name}, ip=ip)
    await session.commit()
    await session.refresh(category)
    logger.info("category.created", extra={"category_id": category.id, "slug": slug})
    return category


@db_guard("category.update")
async def update_category(session, category_id: int, changes: dict, actor: AdminUser, ip=None) -> SuggestionCategory:
    category = await category_by_id(session, category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    if changes.get("name"):
        slug = _slug_or_400(changes["name"])
        if await category_id_by_slug(session, slug, exclude_id=category.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A category with this name already exists")
        changes["name"] = changes["name"].strip()
        changes["slug"] = slug

    for field, value in changes.items():
        setattr(category, field, value)
    session.add(category)

    action = ActivityAction.UPDATE
    if "is_active" in changes:
        action = ActivityAction.ACTIVATE if changes["is_active"] else ActivityAction.DEACTIVATE
    await log_activity(session, admin_id=actor.id, action=action.value, resource="suggestion_category",
                       resource_id=str(category.id), details={k: v for k, v in changes.items() if k != "description"}, ip=ip)
    await session.commit()
    await session.refresh(category)
    return category


@db_guard("category.delete")
async def delete_category(session, category_id: int, actor: AdminUser, ip=None) -> None:
    category = await category_by_id(session, category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    if await count_suggestions_in_category(session, category_id) > 0:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot delete category with existing suggestions")

    await delete_category_row(session, category_id)
    await log_activity(session, admin_id=actor.id, action=ActivityAction.DELETE.value, resource="suggestion_category",
                       resource_id=str(category_id), details={"name": category.name}, ip=ip)
    await session.commit()
    logger.info("category.deleted", extra={"category_id": category_id})
