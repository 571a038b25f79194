from datetime import datetime
from typing import Optional
from sqlalchemy import delete, func, select, update
from intranet.schema.full_schema import AdminUser, Suggestion, SuggestionCategory
from intranet.suggestions.constants import MAX_CATEGORY_ID


# ---------- categories ----------

async def active_category(session, ref) -> Optional[SuggestionCategory]:
    """Accepts the numeric id or the slug."""
    if isinstance(ref, int) or (isinstance(ref, str) and ref.strip().isdecimal()):
        if not 1 <= int(ref) <= MAX_CATEGORY_ID:
            return None
        cond = SuggestionCategory.id == int(ref)
    elif isinstance(ref, str) and ref.strip():
        cond = SuggestionCategory.slug == ref.strip().lower()
    else:
        return None
    stmt = select(SuggestionCategory).where(cond, SuggestionCategory.is_active.is_(True))
    return (await session.execute(stmt)).scalar_one_or_none()


async def list_categories(session, only_active: bool = True):
    stmt = select(SuggestionCategory)
    if only_active:
        stmt = stmt.where(SuggestionCategory.is_active.is_(True))
    stmt = stmt.order_by(SuggestionCategory.display_order, SuggestionCategory.id)
    return (await session.execute(stmt)).scalars().all()


async def category_by_id(session, category_id: int) -> Optional[SuggestionCategory]:
    return await session.get(SuggestionCategory, category_id)


async def category_id_by_slug(session, slug: str, exclude_id: Optional[int] = None) -> Optional[int]:
    stmt = select(SuggestionCategory.id).where(SuggestionCategory.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(SuggestionCategory.id != exclude_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def next_display_order(session) -> int:
    current = (await session.execute(select(func.max(SuggestionCategory.display_order)))).scalar_one_or_none()
    return (current if current is not None else -1) + 1


async def count_suggestions_in_category(session, category_id: int) -> int:
    stmt = select(func.count(Suggestion.id)).where(Suggestion.category_id == category_id)
    return (await session.execute(stmt)).scalar_one()


async def delete_category_row(session, category_id: int) -> None:
    await session.execute(delete(SuggestionCategory).where(SuggestionCategory.id == category_id))


# ---------- suggestions ----------

async def insert_suggestion(session, content: str, category_id: int) -> Suggestion:
    row = Suggestion(content=content, category_id=category_id)
    session.add(row)
    await session.flush()
    return row


def _suggestion_select():
    return (
        select(Suggestion, SuggestionCategory, AdminUser.name)
        .join(SuggestionCategory, SuggestionCategory.id == Suggestion.category_id)
        .outerjoin(AdminUser, AdminUser.id == Suggestion.reviewed_by_id)
    )


def _filters(status: Optional[str], category_id: Optional[int], search: Optional[str]):
    conds = []
    if status:
        conds.append(Suggestion.status == status)
    if category_id is not None:
        conds.append(Suggestion.category_id == category_id)
    if search:
        conds.append(func.lower(Suggestion.content).contains(search.lower(), autoescape=True))
    return conds


async def fetch_suggestions(session, *, status: Optional[str] = None, category_id: Optional[int] = None,
                            search: Optional[str] = None, page: int = 1, limit: int = 20):
    conds = _filters(status, category_id, search)
    total = (await session.execute(select(func.count(Suggestion.id)).where(*conds))).scalar_one()
    stmt = (
        _suggestion_select()
        .where(*conds)
        .order_by(Suggestion.created_at.desc(), Suggestion.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return (await session.execute(stmt)).all(), total


async def fetch_suggestion(session, public_id):
    stmt = _suggestion_select().where(Suggestion.public_id == public_id)
    return (await session.execute(stmt)).first()


async def suggestion_id_by_public_id(session, public_id) -> Optional[int]:
    stmt = select(Suggestion.id).where(Suggestion.public_id == public_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def update_suggestion(session, suggestion_id: int, **values) -> None:
    await session.execute(update(Suggestion).where(Suggestion.id == suggestion_id).values(**values))


async def delete_suggestion_row(session, suggestion_id: int) -> None:
    await session.execute(delete(Suggestion).where(Suggestion.id == suggestion_id))


async def counts_by_status(session):
    stmt = select(Suggestion.status, func.count(Suggestion.id)).group_by(Suggestion.status)
    return {row[0]: row[1] for row in (await session.execute(stmt)).all()}


async def count_since(session, since: datetime) -> int:
    stmt = select(func.count(Suggestion.id)).where(Suggestion.created_at >= since)
    return (await session.execute(stmt)).scalar_one()
