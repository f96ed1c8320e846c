"""
Swipe engine: records likes and passes, enforces the rolling like quota and
turns mutual likes into friendships.

Decisions are final per (viewer, target) pair. A like becomes a match when the
target had already liked the viewer at the moment the viewer's like is stored.
Every step is safe to re-run, so a retried like after a partial failure still
completes the friendship.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.core.config import get_settings
from kindred.core.exceptions import InvalidAction, NotFound, QuotaExceeded
from kindred.db.base import utcnow
from kindred.db.repositories import block_repo, friendship_repo, like_repo, pass_repo, profile_repo
from kindred.db.utils.session_management import store_operation


@dataclass
class SwipeResult:
    """Outcome of a like."""
    target_id: str
    matched: bool


@dataclass
class QuotaStatus:
    """How much of the like quota the viewer has used in the current window."""
    used: int
    limit: int
    reset_at: Optional[datetime] = None

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    @property
    def exceeded(self) -> bool:
        return self.used >= self.limit


def compute_quota(
    used: int,
    oldest: Optional[datetime],
    now: datetime,
    limit: int,
    window: timedelta,
    retry_delay: timedelta,
) -> QuotaStatus:
    """
    Work out the quota state from the likes counted in the trailing window.

    When the limit is reached the window reopens once its oldest like rolls off,
    at oldest + window. If that moment is unknown or not strictly in the future,
    the viewer is asked to wait retry_delay instead.
    """
    if used < limit:
        return QuotaStatus(used=used, limit=limit)

    reset_at = oldest + window if oldest is not None else None
    if reset_at is None or reset_at <= now:
        reset_at = now + retry_delay
    return QuotaStatus(used=used, limit=limit, reset_at=reset_at)


async def _load_quota(session: AsyncSession, viewer_id: str, now: datetime) -> QuotaStatus:
    settings = get_settings()
    window = timedelta(hours=settings.SWIPE_WINDOW_HOURS)
    used, oldest = await like_repo.window_usage(session, viewer_id, since=now - window)
    return compute_quota(
        used,
        oldest,
        now,
        limit=settings.SWIPE_LIMIT,
        window=window,
        retry_delay=timedelta(seconds=settings.SWIPE_RETRY_SECONDS),
    )


async def _check_pair(session: AsyncSession, viewer_id: str, target_id: str) -> None:
    if viewer_id == target_id:
        raise InvalidAction("Cannot swipe on your own profile")
    if await profile_repo.get(session, viewer_id) is None:
        raise NotFound(viewer_id)
    if await profile_repo.get_approved(session, target_id) is None:
        raise NotFound(target_id)
    # A block in either direction hides the pair from each other
    if target_id in await block_repo.get_related_ids(session, viewer_id):
        raise InvalidAction("Cannot swipe on a blocked profile")


async def _complete_match(session: AsyncSession, viewer_id: str, target_id: str, now: datetime) -> bool:
    """Create the friendship if the target has liked the viewer. Idempotent."""
    if not await like_repo.has_liked(session, target_id, viewer_id):
        return False
    await friendship_repo.create_pair(session, viewer_id, target_id, created_at=now)
    return True


@store_operation
async def get_quota_status(session: AsyncSession, viewer_id: str, now: Optional[datetime] = None) -> QuotaStatus:
    return await _load_quota(session, viewer_id, now or utcnow())


@store_operation
async def record_like(
    session: AsyncSession,
    viewer_id: str,
    target_id: str,
    now: Optional[datetime] = None,
) -> SwipeResult:
    """
    Like a profile and report whether it produced a match.

    Raises:
        InvalidAction: viewer and target are the same user, either side blocked
            the other, or the viewer already passed on the target
        NotFound: the viewer does not exist, or the target is missing or unapproved
        QuotaExceeded: the viewer reached SWIPE_LIMIT likes in the trailing window;
            nothing is recorded
    """
    now = now or utcnow()
    await _check_pair(session, viewer_id, target_id)
    if await pass_repo.has_passed(session, viewer_id, target_id):
        raise InvalidAction("Already passed on this profile")

    # A repeated like neither adds a row nor spends quota, it only re-checks the match
    if not await like_repo.has_liked(session, viewer_id, target_id):
        quota = await _load_quota(session, viewer_id, now)
        if quota.exceeded:
            logger.info(f"Like quota reached for {viewer_id} ({quota.used}/{quota.limit}), resets at {quota.reset_at}")
            raise QuotaExceeded(reset_at=quota.reset_at, limit=quota.limit)
        await like_repo.add_like(session, viewer_id, target_id, created_at=now)
    else:
        logger.debug(f"{viewer_id} already liked {target_id}, re-checking match")

    matched = await _complete_match(session, viewer_id, target_id, now)
    if matched:
        logger.info(f"Match between {viewer_id} and {target_id}")
    return SwipeResult(target_id=target_id, matched=matched)


@store_operation
async def record_pass(
    session: AsyncSession,
    viewer_id: str,
    target_id: str,
    now: Optional[datetime] = None,
) -> None:
    """Pass on a profile. Passes are unlimited and never create a match."""
    await _check_pair(session, viewer_id, target_id)
    if await like_repo.has_liked(session, viewer_id, target_id):
        raise InvalidAction("Already liked this profile")
    if await pass_repo.has_passed(session, viewer_id, target_id):
        return
    await pass_repo.add_pass(session, viewer_id, target_id, created_at=now or utcnow())


@store_operation
async def reconcile_matches(session: AsyncSession, viewer_id: str, now: Optional[datetime] = None) -> List[str]:
    """
    Create any friendship missing for a mutual like involving the viewer.
    Pairs with a block in either direction are skipped.

    Returns:
        IDs of the users newly matched with the viewer, sorted
    """
    now = now or utcnow()
    mutual = await like_repo.get_mutual_ids(session, viewer_id)
    friends = await friendship_repo.get_friend_ids(session, viewer_id)
    blocked = await block_repo.get_related_ids(session, viewer_id)
    missing = sorted(mutual - friends - blocked)
    for other_id in missing:
        await friendship_repo.create_pair(session, viewer_id, other_id, created_at=now)
    if missing:
        logger.info(f"Reconciled {len(missing)} missing matches for {viewer_id}")
    return missing
