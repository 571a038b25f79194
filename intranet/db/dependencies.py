from typing import AsyncGenerator
from fastapi import Request
from sqlalchemy.ext.asyncio import  AsyncSession


async def get_session(request: Request) -> AsyncGenerator[AsyncSession,None]:
    # the session maker lives on app.state so the whole app (routes and middleware) shares one store
    async with request.app.state.session_maker() as session:
        yield session
