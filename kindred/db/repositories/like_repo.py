from datetime import datetime
from typing import List, Optional, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from kindred.core.diagnostics import track_db
from kindred.db.models import UserLike
from kindred.db.repositories.base import BaseRepository


class LikeRepository(BaseRepository[UserLike]):
    """Repository for like events."""

    def __init__(self):
        super().__init__(UserLike)

    async def has_liked(self, session: AsyncSession, user_id: str, liked_user_id: str) -> bool:
        """Check whether user_id has ever liked liked_user_id."""
        return await self.exists(
            session,
            (UserLike.user_id == user_id) & (UserLike.liked_user_id == liked_user_id),
        )

    @track_db
    async def add_like(self, session: AsyncSession, user_id: str, liked_user_id: str, created_at: datetime) -> UserLike:
        return await self.create(
            session,
            data={
                "user_id": user_id,
                "liked_user_id": liked_user_id,
                "created_at": created_at,
            }
        )

    @track_db
    async def window_usage(self, session: AsyncSession, user_id: str, since: datetime) -> Tuple[int, Optional[datetime]]:
        """
        Count a user's likes at or after `since`.

        Returns:
            (count, timestamp of the oldest like in the window or None)
        """
        query = (
            select(func.count(UserLike.id), func.min(UserLike.created_at))
            .where(UserLike.user_id == user_id, UserLike.created_at >= since)
        )
        result = await session.execute(query)
        count, oldest = result.one()
        return count or 0, oldest

    async def get_liked_ids(self, session: AsyncSession, user_id: str) -> Set[str]:
        """IDs of everyone this user has liked."""
        result = await session.execute(
            select(UserLike.liked_user_id).where(UserLike.user_id == user_id).distinct()
        )
        return set(result.scalars().all())

    async def get_liker_ids(self, session: AsyncSession, user_id: str) -> List[str]:
        """IDs of users who liked this user, most recent like first, without duplicates."""
        result = await session.execute(
            select(UserLike.user_id, func.max(UserLike.created_at).label("last_liked"))
            .where(UserLike.liked_user_id == user_id)
            .group_by(UserLike.user_id)
            .order_by(func.max(UserLike.created_at).desc(), UserLike.user_id.asc())
        )
        return [row.user_id for row in result.all()]

    @track_db
    async def get_mutual_ids(self, session: AsyncSession, user_id: str) -> Set[str]:
        """IDs of users this user liked who also liked them back."""
        back = aliased(UserLike)
        query = (
            select(UserLike.liked_user_id)
            .join(
                back,
                (back.user_id == UserLike.liked_user_id) & (back.liked_user_id == UserLike.user_id),
            )
            .where(UserLike.user_id == user_id)
            .distinct()
        )
        result = await session.execute(query)
        return set(result.scalars().all())


like_repo = LikeRepository()
