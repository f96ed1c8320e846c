from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.db.base import utcnow
from kindred.db.models import FriendRequest
from kindred.db.repositories.base import BaseRepository


class FriendRequestRepository(BaseRepository[FriendRequest]):
    """Repository for friend requests."""

    def __init__(self):
        super().__init__(FriendRequest)

    async def get_pending(self, session: AsyncSession, from_user_id: str, to_user_id: str) -> FriendRequest | None:
        return await self.get_by_attribute(
            session,
            expression=(
                (FriendRequest.from_user_id == from_user_id)
                & (FriendRequest.to_user_id == to_user_id)
                & (FriendRequest.status == "pending")
            ),
        )

    async def set_status(self, session: AsyncSession, from_user_id: str, to_user_id: str, status: str) -> int:
        """Resolve every pending request from one user to another. Returns rows changed."""
        result = await session.execute(
            update(FriendRequest)
            .where(
                FriendRequest.from_user_id == from_user_id,
                FriendRequest.to_user_id == to_user_id,
                FriendRequest.status == "pending",
            )
            .values(status=status, updated_at=utcnow())
        )
        await session.commit()
        return result.rowcount

    async def get_incoming(self, session: AsyncSession, to_user_id: str) -> Sequence[FriendRequest]:
        """Pending requests addressed to a user, newest first."""
        result = await session.execute(
            select(FriendRequest)
            .where(FriendRequest.to_user_id == to_user_id, FriendRequest.status == "pending")
            .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
        )
        return result.scalars().all()


friend_request_repo = FriendRequestRepository()
