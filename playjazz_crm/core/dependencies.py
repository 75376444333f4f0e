from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from playjazz_crm.db.session import AsyncSessionLocal


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session
