from typing import Set

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.db.models import Block
from kindred.db.repositories.base import BaseRepository


class BlockRepository(BaseRepository[Block]):
    """Repository for blocked users."""

    def __init__(self):
        super().__init__(Block)

    async def block_user(
        self,
        session: AsyncSession,
        blocker_id: str,
        blocked_id: str,
    ) -> Block:
        """
        Block a user.

        Args:
            session: Database session
            blocker_id: ID of the user doing the blocking
            blocked_id: ID of the user being blocked

        Returns:
            The created (or already existing) block
        """
        # Check if already blocked
        existing = await self.is_blocked(session, blocker_id, blocked_id)
        if existing:
            return existing

        try:
            return await self.create(
                session,
                data={
                    "blocker_id": blocker_id,
                    "blocked_id": blocked_id,
                }
            )
        except IntegrityError:
            # Another request inserted the same block in between
            return await self.is_blocked(session, blocker_id, blocked_id)

    async def unblock_user(
        self,
        session: AsyncSession,
        blocker_id: str,
        blocked_id: str,
    ) -> bool:
        """
        Unblock a user.

        Returns:
            True if successfully unblocked, False if not found
        """
        query = (
            delete(Block)
            .where(
                (Block.blocker_id == blocker_id) &
                (Block.blocked_id == blocked_id)
            )
        )
        result = await session.execute(query)
        await session.commit()

        return result.rowcount > 0

    async def is_blocked(
        self,
        session: AsyncSession,
        blocker_id: str,
        blocked_id: str,
    ) -> Block | None:
        """
        Check if a user is blocked by another user.

        Returns:
            The Block object if blocked, None otherwise
        """
        return await self.get_by_attribute(
            session,
            expression=(Block.blocker_id == blocker_id) & (Block.blocked_id == blocked_id),
        )

    async def get_blocked_ids(self, session: AsyncSession, blocker_id: str) -> Set[str]:
        """IDs of users this user has blocked."""
        result = await session.execute(select(Block.blocked_id).where(Block.blocker_id == blocker_id))
        return set(result.scalars().all())

    async def get_related_ids(self, session: AsyncSession, user_id: str) -> Set[str]:
        """IDs of users on either side of a block with this user."""
        result = await session.execute(
            select(Block.blocker_id, Block.blocked_id).where(
                or_(Block.blocker_id == user_id, Block.blocked_id == user_id)
            )
        )
        return {
            row.blocked_id if row.blocker_id == user_id else row.blocker_id
            for row in result.all()
        }


block_repo = BlockRepository()
