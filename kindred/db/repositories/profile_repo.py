from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.core.diagnostics import track_db
from kindred.db.models import Profile
from kindred.db.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Repository for profiles."""

    def __init__(self):
        super().__init__(Profile)

    async def get_approved(self, session: AsyncSession, user_id: str) -> Profile | None:
        """Get a profile only if it has passed moderation."""
        profile = await self.get(session, user_id)
        if profile is None or profile.status != "approved":
            return None
        return profile

    @track_db
    async def get_discoverable(
        self,
        session: AsyncSession,
        viewer_id: str,
        excluded_ids: Iterable[str] = (),
    ) -> Sequence[Profile]:
        """
        Get approved, visible profiles other than the viewer.

        Args:
            session: Database session
            viewer_id: ID of the user browsing
            excluded_ids: IDs that must not be returned

        Returns:
            Profiles ordered by creation time, then user ID
        """
        query = (
            select(Profile)
            .where(
                Profile.status == "approved",
                Profile.is_visible.is_(True),
                Profile.user_id != viewer_id,
            )
            .order_by(Profile.created_at.asc(), Profile.user_id.asc())
        )
        excluded = set(excluded_ids)
        if excluded:
            query = query.where(Profile.user_id.not_in(excluded))
        result = await session.execute(query)
        return result.scalars().all()

    @track_db
    async def get_many_approved(self, session: AsyncSession, user_ids: Iterable[str]) -> Sequence[Profile]:
        """Get approved profiles for the given IDs, ordered by name."""
        ids = set(user_ids)
        if not ids:
            return []
        query = (
            select(Profile)
            .where(Profile.user_id.in_(ids), Profile.status == "approved")
            .order_by(Profile.full_name.asc(), Profile.user_id.asc())
        )
        result = await session.execute(query)
        return result.scalars().all()


profile_repo = ProfileRepository()
