from datetime import datetime
from typing import Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.db.models import UserPass
from kindred.db.repositories.base import BaseRepository


class PassRepository(BaseRepository[UserPass]):
    """Repository for pass events."""

    def __init__(self):
        super().__init__(UserPass)

    async def has_passed(self, session: AsyncSession, user_id: str, passed_user_id: str) -> bool:
        return await self.exists(
            session,
            (UserPass.user_id == user_id) & (UserPass.passed_user_id == passed_user_id),
        )

    async def add_pass(self, session: AsyncSession, user_id: str, passed_user_id: str, created_at: datetime) -> UserPass:
        return await self.create(
            session,
            data={
                "user_id": user_id,
                "passed_user_id": passed_user_id,
                "created_at": created_at,
            }
        )

    async def get_passed_ids(self, session: AsyncSession, user_id: str) -> Set[str]:
        result = await session.execute(
            select(UserPass.passed_user_id).where(UserPass.user_id == user_id).distinct()
        )
        return set(result.scalars().all())


pass_repo = PassRepository()
