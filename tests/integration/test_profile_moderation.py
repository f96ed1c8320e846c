import pytest

from kindred.core.exceptions import NotFound
from kindred.discovery import get_candidates
from kindred.discovery.profiles import get_profile, set_status, update_location


async def test_approval_makes_profile_discoverable(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("newcomer", status="pending")
    assert await get_candidates(test_session, "viewer", 30) == []

    profile = await set_status(test_session, "newcomer", "approved")

    assert profile.status == "approved"
    assert [p.user_id for p in await get_candidates(test_session, "viewer", 30)] == ["newcomer"]


async def test_set_status_validation(test_session, make_profile):
    await make_profile("someone")
    with pytest.raises(ValueError):
        await set_status(test_session, "someone", "banned")
    with pytest.raises(NotFound):
        await set_status(test_session, "ghost", "approved")


async def test_update_location_moves_profile_out_of_range(test_session, make_profile):
    await make_profile("viewer")
    await make_profile("mover")

    profile = await update_location(test_session, "mover", 39.92, 32.85, city="Ankara", country="Turkey")

    assert (profile.latitude, profile.longitude, profile.city) == (39.92, 32.85, "Ankara")
    assert await get_candidates(test_session, "viewer", 30) == []
    with pytest.raises(ValueError):
        await update_location(test_session, "mover", 123.0, 0.0)


async def test_get_profile(test_session, make_profile):
    await make_profile("someone", full_name="Someone Else")
    assert (await get_profile(test_session, "someone")).full_name == "Someone Else"
    with pytest.raises(NotFound):
        await get_profile(test_session, "ghost")
