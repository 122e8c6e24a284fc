# ticketdesk/db/session.py
from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ticketdesk.core.config import settings

engine = create_async_engine(settings.database_url, pool_pre_ping=True, future=True)

# expire_on_commit=False: після commit атрибути лишаються доступними
# без lazy-load (в async це MissingGreenlet)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session
