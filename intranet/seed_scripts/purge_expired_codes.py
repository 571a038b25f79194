import asyncio
from intranet.auth.repository import purge_expired_codes
from intranet.common.utils import now
from intranet.db.connection import async_session


async def purge(session_maker=async_session, clock=now) -> int:
    async with session_maker() as session:
        removed = await purge_expired_codes(session, clock())
        await session.commit()
    print(f"Removed {removed} expired codes")
    return removed

if __name__ == "__main__":
    asyncio.run(purge())
