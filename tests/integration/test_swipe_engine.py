import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from kindred.core.exceptions import InvalidAction, NotFound, QuotaExceeded
from kindred.db.models import Profile, UserLike, UserPass
from kindred.db.repositories import block_repo, friendship_repo, like_repo
from kindred.discovery import (
    get_candidates,
    get_quota_status,
    reconcile_matches,
    record_like,
    record_pass,
)
from tests.fixtures.database import ISTANBUL, count_friendship_rows

NOW = datetime(2026, 2, 1, 12, 0, 0)


async def _count(session, model, **filters):
    query = select(func.count()).select_from(model)
    for key, value in filters.items():
        query = query.where(getattr(model, key) == value)
    return (await session.execute(query)).scalar_one()


@pytest.fixture
async def crowd(make_profile):
    """A viewer plus 25 approved profiles to like."""
    await make_profile("viewer")
    for i in range(25):
        await make_profile(f"user{i:02d}")


@pytest.mark.swipes
async def test_one_sided_like_then_match(test_session, make_profile):
    await make_profile("alice")
    await make_profile("bob")

    first = await record_like(test_session, "alice", "bob", now=NOW)
    assert first.matched is False
    assert await count_friendship_rows(test_session, "alice", "bob") == 0

    second = await record_like(test_session, "bob", "alice", now=NOW + timedelta(minutes=5))
    assert second.matched is True
    assert second.target_id == "alice"
    # One friendship, stored as one row per direction
    assert await count_friendship_rows(test_session, "alice", "bob") == 2
    assert await friendship_repo.are_friends(test_session, "alice", "bob")


@pytest.mark.swipes
async def test_near_simultaneous_likes_both_match(test_session, make_profile):
    await make_profile("alice")
    await make_profile("bob")
    # Both likes land before either side runs its mutual check
    await like_repo.add_like(test_session, "alice", "bob", created_at=NOW)
    await like_repo.add_like(test_session, "bob", "alice", created_at=NOW)

    alice_result = await record_like(test_session, "alice", "bob", now=NOW)
    bob_result = await record_like(test_session, "bob", "alice", now=NOW)

    assert alice_result.matched and bob_result.matched
    assert await count_friendship_rows(test_session, "alice", "bob") == 2
    assert await _count(test_session, UserLike, user_id="alice") == 1


@pytest.mark.swipes
async def test_concurrent_mutual_likes_on_separate_connections(file_session_maker):
    async with file_session_maker() as session:
        for name in ["alice", "bob"]:
            session.add(Profile(
                user_id=name,
                full_name=name.title(),
                latitude=ISTANBUL[0],
                longitude=ISTANBUL[1],
                status="approved",
            ))
        await session.commit()

    async with file_session_maker() as alice_session, file_session_maker() as bob_session:
        results = await asyncio.gather(
            record_like(alice_session, "alice", "bob", now=NOW),
            record_like(bob_session, "bob", "alice", now=NOW),
        )

    # Whichever like is stored second always sees the first one
    assert any(result.matched for result in results)

    async with file_session_maker() as session:
        assert await count_friendship_rows(session, "alice", "bob") == 2
        # A side that checked too early gets the match on its next like, without a new row
        assert (await record_like(session, "alice", "bob", now=NOW)).matched
        assert (await record_like(session, "bob", "alice", now=NOW)).matched
        assert await count_friendship_rows(session, "alice", "bob") == 2
        assert await _count(session, UserLike) == 2


@pytest.mark.swipes
async def test_friendship_creation_is_idempotent(test_session, make_profile):
    await make_profile("alice")
    await make_profile("bob")

    for _ in range(3):
        await friendship_repo.create_pair(test_session, "alice", "bob", created_at=NOW)
    await friendship_repo.create_pair(test_session, "bob", "alice", created_at=NOW)

    assert await count_friendship_rows(test_session, "alice", "bob") == 2


@pytest.mark.swipes
async def test_retry_completes_a_half_finished_match(test_session, make_profile):
    await make_profile("alice")
    await make_profile("bob")
    await like_repo.add_like(test_session, "bob", "alice", created_at=NOW)
    # alice's like was stored but the friendship insert never happened
    await like_repo.add_like(test_session, "alice", "bob", created_at=NOW)

    result = await record_like(test_session, "alice", "bob", now=NOW + timedelta(seconds=30))

    assert result.matched is True
    assert await count_friendship_rows(test_session, "alice", "bob") == 2


@pytest.mark.swipes
async def test_reconcile_creates_missing_friendships(test_session, make_profile):
    for name in ["alice", "bob", "carol", "dave"]:
        await make_profile(name)
    for a, b in [("alice", "bob"), ("bob", "alice"), ("carol", "alice"), ("alice", "carol"), ("alice", "dave")]:
        await like_repo.add_like(test_session, a, b, created_at=NOW)
    await friendship_repo.create_pair(test_session, "alice", "carol", created_at=NOW)

    assert await reconcile_matches(test_session, "alice", now=NOW) == ["bob"]
    assert await count_friendship_rows(test_session, "alice", "bob") == 2
    assert await count_friendship_rows(test_session, "alice", "dave") == 0
    assert await reconcile_matches(test_session, "alice", now=NOW) == []


@pytest.mark.swipes
async def test_reconcile_skips_blocked_pairs(test_session, make_profile):
    for name in ["alice", "bob", "carol"]:
        await make_profile(name)
    for a, b in [("alice", "bob"), ("bob", "alice"), ("alice", "carol"), ("carol", "alice")]:
        await like_repo.add_like(test_session, a, b, created_at=NOW)
    await block_repo.block_user(test_session, "bob", "alice")

    assert await reconcile_matches(test_session, "alice", now=NOW) == ["carol"]
    assert await reconcile_matches(test_session, "bob", now=NOW) == []
    assert await count_friendship_rows(test_session, "alice", "bob") == 0
    assert await count_friendship_rows(test_session, "alice", "carol") == 2


@pytest.mark.swipes
async def test_twenty_first_like_is_rejected(test_session, crowd):
    first_like = NOW - timedelta(minutes=59)
    for i in range(20):
        await record_like(test_session, "viewer", f"user{i:02d}", now=first_like + timedelta(minutes=i))

    with pytest.raises(QuotaExceeded) as exc_info:
        await record_like(test_session, "viewer", "user20", now=NOW)

    assert exc_info.value.reset_at == first_like + timedelta(hours=24)
    assert exc_info.value.reset_at > NOW
    assert exc_info.value.limit == 20
    assert await _count(test_session, UserLike, user_id="viewer") == 20
    assert await like_repo.has_liked(test_session, "viewer", "user20") is False


@pytest.mark.swipes
async def test_quota_window_slides(test_session, crowd):
    oldest = NOW - timedelta(hours=23, minutes=30)
    await record_like(test_session, "viewer", "user00", now=oldest)
    for i in range(1, 20):
        await record_like(test_session, "viewer", f"user{i:02d}", now=NOW - timedelta(hours=2) + timedelta(minutes=i))

    with pytest.raises(QuotaExceeded) as exc_info:
        await record_like(test_session, "viewer", "user20", now=NOW)
    assert exc_info.value.reset_at == oldest + timedelta(hours=24)

    # Once the oldest like ages past 24 hours a like goes through, no reset needed
    later = oldest + timedelta(hours=24, seconds=1)
    result = await record_like(test_session, "viewer", "user20", now=later)
    assert result.matched is False

    status = await get_quota_status(test_session, "viewer", now=later)
    assert status.used == 20
    assert status.exceeded


@pytest.mark.swipes
async def test_passes_do_not_use_quota(test_session, crowd):
    for i in range(20):
        await record_like(test_session, "viewer", f"user{i:02d}", now=NOW)

    await record_pass(test_session, "viewer", "user20", now=NOW)
    await record_pass(test_session, "viewer", "user21", now=NOW)

    assert await _count(test_session, UserPass, user_id="viewer") == 2


@pytest.mark.swipes
async def test_repeated_like_does_not_spend_quota(test_session, crowd):
    for i in range(20):
        await record_like(test_session, "viewer", f"user{i:02d}", now=NOW)

    # Already liked: no new row and no QuotaExceeded
    result = await record_like(test_session, "viewer", "user05", now=NOW)
    assert result.matched is False
    assert await _count(test_session, UserLike, user_id="viewer") == 20


@pytest.mark.swipes
async def test_quota_status(test_session, crowd):
    fresh = await get_quota_status(test_session, "viewer", now=NOW)
    assert (fresh.used, fresh.remaining, fresh.reset_at) == (0, 20, None)

    for i in range(3):
        await record_like(test_session, "viewer", f"user{i:02d}", now=NOW)
    status = await get_quota_status(test_session, "viewer", now=NOW)
    assert (status.used, status.remaining) == (3, 17)


@pytest.mark.swipes
async def test_custom_limit_from_settings(test_session, crowd, monkeypatch):
    from kindred.core.config import get_settings

    monkeypatch.setenv("SWIPE_LIMIT", "2")
    get_settings.cache_clear()

    await record_like(test_session, "viewer", "user00", now=NOW)
    await record_like(test_session, "viewer", "user01", now=NOW)
    with pytest.raises(QuotaExceeded):
        await record_like(test_session, "viewer", "user02", now=NOW)


@pytest.mark.swipes
async def test_pass_never_matches(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("target")
    await record_like(test_session, "target", "viewer", now=NOW)

    await record_pass(test_session, "viewer", "target", now=NOW)

    assert await count_friendship_rows(test_session, "viewer", "target") == 0
    assert "target" not in [p.user_id for p in await get_candidates(test_session, "viewer", 30)]


@pytest.mark.swipes
async def test_pass_then_target_likes_viewer(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("target")

    await record_pass(test_session, "viewer", "target", now=NOW)
    result = await record_like(test_session, "target", "viewer", now=NOW + timedelta(minutes=1))

    assert result.matched is False
    assert await count_friendship_rows(test_session, "viewer", "target") == 0
    assert await get_candidates(test_session, "viewer", 30) == []


@pytest.mark.swipes
async def test_like_after_pass_is_rejected(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("target")
    await record_pass(test_session, "viewer", "target", now=NOW)
    await record_like(test_session, "target", "viewer", now=NOW + timedelta(minutes=1))

    with pytest.raises(InvalidAction):
        await record_like(test_session, "viewer", "target", now=NOW + timedelta(minutes=2))

    assert await count_friendship_rows(test_session, "viewer", "target") == 0
    assert await _count(test_session, UserLike, user_id="viewer") == 0
    assert (await get_quota_status(test_session, "viewer", now=NOW)).used == 0


@pytest.mark.swipes
async def test_pass_after_like_is_rejected(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("target")
    await record_like(test_session, "viewer", "target", now=NOW)

    with pytest.raises(InvalidAction):
        await record_pass(test_session, "viewer", "target", now=NOW + timedelta(minutes=1))

    assert await _count(test_session, UserPass, user_id="viewer") == 0
    assert await like_repo.has_liked(test_session, "viewer", "target")


@pytest.mark.swipes
async def test_mutual_like_across_a_block_is_rejected(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("target")
    await record_like(test_session, "target", "viewer", now=NOW)
    await block_repo.block_user(test_session, "viewer", "target")

    with pytest.raises(InvalidAction):
        await record_like(test_session, "viewer", "target", now=NOW + timedelta(minutes=1))

    assert await count_friendship_rows(test_session, "viewer", "target") == 0
    assert await _count(test_session, UserLike, user_id="viewer") == 0


@pytest.mark.swipes
async def test_blocked_by_target_rejects_swipes(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("target")
    await block_repo.block_user(test_session, "target", "viewer")

    with pytest.raises(InvalidAction):
        await record_like(test_session, "viewer", "target", now=NOW)
    with pytest.raises(InvalidAction):
        await record_pass(test_session, "viewer", "target", now=NOW)

    assert await _count(test_session, UserLike) == 0
    assert await _count(test_session, UserPass) == 0


@pytest.mark.swipes
async def test_repeated_pass_is_harmless(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("target")

    await record_pass(test_session, "viewer", "target", now=NOW)
    await record_pass(test_session, "viewer", "target", now=NOW)

    assert await _count(test_session, UserPass, user_id="viewer") == 1


@pytest.mark.swipes
async def test_like_excludes_target_from_pool(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("target")
    await make_profile("other")

    await record_like(test_session, "viewer", "target", now=NOW)

    assert [p.user_id for p in await get_candidates(test_session, "viewer", 30)] == ["other"]


@pytest.mark.swipes
async def test_invalid_swipes(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("pending", status="pending")

    with pytest.raises(InvalidAction):
        await record_like(test_session, "viewer", "viewer", now=NOW)
    with pytest.raises(NotFound):
        await record_like(test_session, "viewer", "pending", now=NOW)
    with pytest.raises(NotFound):
        await record_like(test_session, "viewer", "ghost", now=NOW)
    with pytest.raises(NotFound):
        await record_like(test_session, "ghost", "viewer", now=NOW)
    with pytest.raises(NotFound):
        await record_pass(test_session, "viewer", "ghost", now=NOW)
    assert await _count(test_session, UserLike) == 0
