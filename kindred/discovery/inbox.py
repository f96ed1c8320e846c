"""
The likes screen: confirmed matches and people who liked the viewer first.
"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from kindred.db.models import Profile
from kindred.db.repositories import block_repo, friendship_repo, like_repo, profile_repo
from kindred.db.utils.session_management import store_operation, with_retry


@with_retry()
@store_operation
async def get_matches(session: AsyncSession, viewer_id: str) -> List[Profile]:
    friend_ids = await friendship_repo.get_friend_ids(session, viewer_id)
    friend_ids -= await block_repo.get_related_ids(session, viewer_id)
    return list(await profile_repo.get_many_approved(session, friend_ids))


@with_retry()
@store_operation
async def get_liked_you(session: AsyncSession, viewer_id: str) -> List[Profile]:
    """Approved users who liked the viewer and are not matched yet, latest like first."""
    liker_ids = await like_repo.get_liker_ids(session, viewer_id)
    hidden = (
        await friendship_repo.get_friend_ids(session, viewer_id)
        | await block_repo.get_related_ids(session, viewer_id)
    )
    pending = [uid for uid in liker_ids if uid not in hidden]
    if not pending:
        return []
    profiles = {p.user_id: p for p in await profile_repo.get_many_approved(session, pending)}
    return [profiles[uid] for uid in pending if uid in profiles]
