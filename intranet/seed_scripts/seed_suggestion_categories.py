import asyncio
from sqlmodel import select
from intranet.db.connection import async_session
from intranet.schema.full_schema import SuggestionCategory

DEFAULT_CATEGORIES = [
    ("Workplace Improvement", "workplace-improvement", "Ideas to improve work environment, facilities, or processes", 0),
    ("Safety & Health", "safety-health", "Suggestions related to workplace safety and employee wellbeing", 1),
    ("Communication", "communication", "Ideas to improve internal communication and collaboration", 2),
    ("Training & Development", "training-development", "Suggestions for learning opportunities and skill development", 3),
    ("Employee Benefits", "employee-benefits", "Ideas related to employee benefits and welfare", 4),
    ("Operations & Efficiency", "operations-efficiency", "Suggestions to improve operational processes and efficiency", 5),
    ("Other", "other", "General suggestions that don't fit other categories", 99),
]


async def seed_categories(session_maker=async_session) -> int:
    created = 0
    async with session_maker() as session:
        existing = set((await session.execute(select(SuggestionCategory.slug))).scalars().all())
        for name, slug, description, order in DEFAULT_CATEGORIES:
            if slug in existing:
                print(f"  Suggestion category already exists: {name}")
                continue
            session.add(SuggestionCategory(name=name, slug=slug, description=description, display_order=order))
            created += 1
            print(f"  Created suggestion category: {name}")
        await session.commit()
    return created

if __name__ == "__main__":
    asyncio.run(seed_categories())
