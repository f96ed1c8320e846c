from typing import Iterable, List

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.core.exceptions import InvalidAction, NotFound
from kindred.db.models import Block
from kindred.db.repositories import block_repo, profile_repo
from kindred.db.utils.session_management import store_operation


@store_operation
async def block_user(session: AsyncSession, blocker_id: str, blocked_id: str) -> Block:
    if blocker_id == blocked_id:
        raise InvalidAction("Cannot block yourself")
    if await profile_repo.get(session, blocked_id) is None:
        raise NotFound(blocked_id)
    block = await block_repo.block_user(session, blocker_id, blocked_id)
    logger.info(f"{blocker_id} blocked {blocked_id}")
    return block


@store_operation
async def unblock_user(session: AsyncSession, blocker_id: str, blocked_id: str) -> bool:
    return await block_repo.unblock_user(session, blocker_id, blocked_id)


@store_operation
async def is_blocked_between(session: AsyncSession, user_id: str, other_id: str) -> bool:
    """True if either user has blocked the other."""
    return other_id in await block_repo.get_related_ids(session, user_id)


@store_operation
async def filter_conversation_partners(
    session: AsyncSession,
    viewer_id: str,
    partner_ids: Iterable[str],
) -> List[str]:
    """Drop conversation partners the viewer has blocked, keeping order."""
    blocked = await block_repo.get_blocked_ids(session, viewer_id)
    return [pid for pid in partner_ids if pid not in blocked]
