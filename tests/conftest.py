from datetime import datetime, timezone
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fakeredis import aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from intranet.main import create_app
from intranet.notifications.sms import SmsDispatcher
from intranet.schema.full_schema import AdminRole, AdminUser, SuggestionCategory
from tests.helpers import ADMIN_PHONE, SUPERADMIN_PHONE, MutableClock, RecordingSender


@pytest.fixture
def clock():
    return MutableClock(datetime(2026, 3, 2, 10, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def dispatcher(sender):
    return SmsDispatcher(sender, timeout=2)


@pytest_asyncio.fixture
async def engine(tmp_path):
    # file backed so concurrent sessions really are separate connections
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'intranet_test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def redis():
    r = aioredis.FakeRedis()
    await r.flushall()
    yield r
    await r.flushall()
    await r.aclose()


async def _add_admin(session_maker, phone, name, role, is_active=True) -> AdminUser:
    async with session_maker() as session:
        admin = AdminUser(phone=phone, name=name, role=role, is_active=is_active)
        session.add(admin)
        await session.commit()
        await session.refresh(admin)
        return admin


@pytest_asyncio.fixture
async def admin(session_maker):
    return await _add_admin(session_maker, ADMIN_PHONE, "Ama Mensah", AdminRole.ADMIN.value)


@pytest_asyncio.fixture
async def superadmin(session_maker):
    return await _add_admin(session_maker, SUPERADMIN_PHONE, "Kofi Boateng", AdminRole.SUPERADMIN.value)


@pytest_asyncio.fixture
async def categories(session_maker):
    async with session_maker() as session:
        rows = [
            SuggestionCategory(name="Workplace Improvement", slug="workplace-improvement", display_order=0),
            SuggestionCategory(name="Safety & Health", slug="safety-health", display_order=1),
            SuggestionCategory(name="Retired", slug="retired", display_order=2, is_active=False),
        ]
        session.add_all(rows)
        await session.commit()
        for r in rows:
            await session.refresh(r)
        return {r.slug: r for r in rows}


@pytest.fixture
def app(session_maker, redis, sender):
    return create_app(session_maker=session_maker, redis=redis, sms_sender=sender)


@pytest_asyncio.fixture
async def ac_client(app):
    async with LifespanManager(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
