"""
Friend requests. Accepting one creates the same friendship a mutual like does.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.core.exceptions import InvalidAction, NotFound
from kindred.db.base import utcnow
from kindred.db.repositories import block_repo, friend_request_repo, friendship_repo, profile_repo
from kindred.db.utils.session_management import store_operation


@dataclass
class IncomingRequest:
    request_id: int
    from_user_id: str
    full_name: str
    created_at: datetime


@store_operation
async def are_friends(session: AsyncSession, user_id: str, other_id: str) -> bool:
    return await friendship_repo.are_friends(session, user_id, other_id)


@store_operation
async def send_friend_request(session: AsyncSession, from_user_id: str, to_user_id: str) -> str:
    """
    Ask another user to be friends.

    Returns:
        "pending" once a request is waiting, or "accepted" when the other user had
        already asked us and the friendship was created right away
    """
    if from_user_id == to_user_id:
        raise InvalidAction("Cannot send a friend request to yourself")
    if await profile_repo.get(session, from_user_id) is None:
        raise NotFound(from_user_id)
    if await profile_repo.get_approved(session, to_user_id) is None:
        raise NotFound(to_user_id)
    if await friendship_repo.are_friends(session, from_user_id, to_user_id):
        raise InvalidAction("Already friends")
    if to_user_id in await block_repo.get_related_ids(session, from_user_id):
        raise InvalidAction("Cannot send a friend request to this user")

    if await friend_request_repo.get_pending(session, to_user_id, from_user_id):
        await friend_request_repo.set_status(session, to_user_id, from_user_id, "accepted")
        await friendship_repo.create_pair(session, from_user_id, to_user_id, created_at=utcnow())
        logger.info(f"Crossed friend requests between {from_user_id} and {to_user_id}, now friends")
        return "accepted"

    await friend_request_repo.get_or_create(
        session,
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        status="pending",
    )
    return "pending"


@store_operation
async def accept_friend_request(session: AsyncSession, user_id: str, from_user_id: str) -> None:
    """Accept a pending request; accepting twice is a no-op."""
    changed = await friend_request_repo.set_status(session, from_user_id, user_id, "accepted")
    if not changed:
        if await friendship_repo.are_friends(session, user_id, from_user_id):
            return
        raise NotFound(from_user_id, f"No pending friend request from {from_user_id}")
    await friendship_repo.create_pair(session, user_id, from_user_id, created_at=utcnow())
    logger.info(f"{user_id} accepted friend request from {from_user_id}")


@store_operation
async def reject_friend_request(session: AsyncSession, user_id: str, from_user_id: str) -> bool:
    """Returns False when there was nothing pending to reject."""
    return await friend_request_repo.set_status(session, from_user_id, user_id, "rejected") > 0


@store_operation
async def get_incoming_requests(session: AsyncSession, user_id: str) -> List[IncomingRequest]:
    requests = await friend_request_repo.get_incoming(session, user_id)
    if not requests:
        return []
    senders = await profile_repo.get_many_approved(session, {r.from_user_id for r in requests})
    names = {p.user_id: p.full_name for p in senders}
    return [
        IncomingRequest(
            request_id=r.id,
            from_user_id=r.from_user_id,
            full_name=names.get(r.from_user_id, "Unknown"),
            created_at=r.created_at,
        )
        for r in requests
    ]
