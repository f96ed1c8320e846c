"""
Candidate pool: who a viewer may see next in discovery.
"""
from typing import List, Optional, Set

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.core.config import get_settings
from kindred.core.exceptions import NotFound
from kindred.db.models import Profile
from kindred.db.repositories import block_repo, friendship_repo, like_repo, pass_repo, profile_repo
from kindred.db.utils.session_management import store_operation, with_retry
from kindred.discovery.distance import within_radius
from kindred.discovery.profiles import profile_coordinates


async def get_excluded_ids(session: AsyncSession, viewer_id: str) -> Set[str]:
    """
    IDs that must never appear in the viewer's pool.

    Covers users the viewer liked or passed, friends, and blocks in either direction.
    """
    liked = await like_repo.get_liked_ids(session, viewer_id)
    passed = await pass_repo.get_passed_ids(session, viewer_id)
    friends = await friendship_repo.get_friend_ids(session, viewer_id)
    blocked = await block_repo.get_related_ids(session, viewer_id)
    return liked | passed | friends | blocked


@with_retry(max_attempts=3, base_delay=0.5, max_delay=5.0)
@store_operation
async def get_candidates(
    session: AsyncSession,
    viewer_id: str,
    max_radius_km: Optional[float] = None,
    limit: Optional[int] = None,
) -> List[Profile]:
    """
    Get the next batch of discoverable profiles for a viewer.

    Args:
        session: Database session
        viewer_id: ID of the user browsing
        max_radius_km: Distance cutoff, defaults to DEFAULT_RADIUS_KM
        limit: Batch size, defaults to CANDIDATE_LIMIT

    Returns:
        Approved, visible profiles within the radius, in a stable order
        (oldest profile first). Empty when nobody is left.

    Raises:
        NotFound: the viewer has no profile
    """
    settings = get_settings()
    radius = settings.DEFAULT_RADIUS_KM if max_radius_km is None else max_radius_km
    limit = settings.CANDIDATE_LIMIT if limit is None else limit

    viewer = await profile_repo.get(session, viewer_id)
    if viewer is None:
        raise NotFound(viewer_id)

    origin = profile_coordinates(viewer)
    excluded = await get_excluded_ids(session, viewer_id)
    profiles = await profile_repo.get_discoverable(session, viewer_id, excluded)

    candidates = [
        profile for profile in profiles
        if within_radius(profile_coordinates(profile), origin, radius)
    ]
    logger.debug(
        f"Discovery for {viewer_id}: {len(profiles)} eligible, {len(candidates)} within {radius} km, "
        f"{len(excluded)} excluded"
    )
    return candidates[:limit]
