import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.db import base as db_base
from kindred.db.base import create_engine_from_url, get_session, process_database_url
from kindred.db.repositories import block_repo, friend_request_repo


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://u:p@host/db", "postgresql+asyncpg://u:p@host/db"),
        ("postgresql://u:p@host/db", "postgresql+asyncpg://u:p@host/db"),
        ("postgresql+asyncpg://u:p@host/db", "postgresql+asyncpg://u:p@host/db"),
        ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
        ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
        ("", "sqlite+aiosqlite:///./kindred.db"),
    ],
)
def test_process_database_url(url, expected):
    assert process_database_url(url) == expected


async def test_engine_uses_async_driver():
    engine = create_engine_from_url("sqlite:///:memory:")
    try:
        assert engine.dialect.name == "sqlite"
        assert engine.dialect.driver == "aiosqlite"
    finally:
        await engine.dispose()


async def test_get_session_uses_configured_database(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setattr(db_base, "_engine", None)
    monkeypatch.setattr(db_base, "_session_factory", None)

    async for session in get_session():
        assert isinstance(session, AsyncSession)
        assert session.get_bind().dialect.name == "sqlite"

    await db_base.get_engine().dispose()


async def test_base_repository_crud(test_session, make_profile):
    await make_profile("alice")
    await make_profile("bob")

    request, created = await friend_request_repo.get_or_create(
        test_session, from_user_id="alice", to_user_id="bob", status="pending"
    )
    again, created_again = await friend_request_repo.get_or_create(
        test_session, from_user_id="alice", to_user_id="bob", status="pending"
    )
    assert created and not created_again
    assert again.id == request.id

    updated = await friend_request_repo.update(test_session, request.id, {"status": "rejected"})
    assert updated.status == "rejected"

    block = await block_repo.block_user(test_session, "alice", "bob")
    assert await block_repo.delete(test_session, block.id) is True
    assert await block_repo.delete(test_session, block.id) is False
    assert await block_repo.is_blocked(test_session, "alice", "bob") is None
