from datetime import datetime
from typing import Set

from loguru import logger
from sqlalchemy import insert, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.core.diagnostics import track_db
from kindred.db.models import Friendship
from kindred.db.repositories.base import BaseRepository

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class FriendshipRepository(BaseRepository[Friendship]):
    """Repository for friendships, stored as one row per direction."""

    def __init__(self):
        super().__init__(Friendship)

    async def are_friends(self, session: AsyncSession, user_id: str, other_id: str) -> bool:
        return await self.exists(
            session,
            or_(
                (Friendship.user_id == user_id) & (Friendship.friend_id == other_id),
                (Friendship.user_id == other_id) & (Friendship.friend_id == user_id),
            ),
        )

    async def get_friend_ids(self, session: AsyncSession, user_id: str) -> Set[str]:
        """IDs of everyone with a friendship row to or from this user."""
        result = await session.execute(
            select(Friendship.user_id, Friendship.friend_id).where(
                or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)
            )
        )
        return {
            row.friend_id if row.user_id == user_id else row.user_id
            for row in result.all()
        }

    @track_db
    async def create_pair(self, session: AsyncSession, user_id: str, friend_id: str, created_at: datetime) -> None:
        """
        Create both directed rows of a friendship.

        Safe to call repeatedly and concurrently: rows that already exist are
        left alone instead of raising.
        """
        rows = [
            {"user_id": user_id, "friend_id": friend_id, "created_at": created_at},
            {"user_id": friend_id, "friend_id": user_id, "created_at": created_at},
        ]
        dialect = session.get_bind().dialect.name
        make_insert = _UPSERT_INSERTS.get(dialect)

        if make_insert is not None:
            stmt = make_insert(Friendship).on_conflict_do_nothing(
                index_elements=["user_id", "friend_id"]
            )
            try:
                await session.execute(stmt, rows)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            return

        # Fallback: row-by-row insert, a duplicate key means the row is already there
        for row in rows:
            try:
                await session.execute(insert(Friendship).values(**row))
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.debug(f"Friendship {row['user_id']} -> {row['friend_id']} already exists")


friendship_repo = FriendshipRepository()
