"""Tests for user accounts and API keys."""

from __future__ import annotations

import pytest

from postify.errors import UserExistsError
from postify.models.post import Platform, Tone
from postify.models.user import UserPreferences
from postify.substrate import Substrate
from postify.substrate.user_store import hash_api_key


@pytest.fixture
async def substrate(tmp_path):
    s = Substrate(str(tmp_path / "postify.db"))
    await s.initialize()
    return s


@pytest.mark.asyncio
async def test_create_and_lookup_by_key(substrate):
    user, api_key = await substrate.users.create_user(" Ada@Example.com ", "Ada")

    assert user.email == "ada@example.com"
    assert api_key.startswith("pf_")
    found = await substrate.users.get_by_api_key(api_key)
    assert found is not None
    assert found.user_id == user.user_id
    assert await substrate.users.get_by_api_key("pf_wrong") is None


@pytest.mark.asyncio
async def test_key_is_not_stored_in_plaintext(substrate):
    import aiosqlite

    _, api_key = await substrate.users.create_user("ada@example.com", "Ada")
    async with aiosqlite.connect(substrate.db_path) as db:
        cursor = await db.execute("SELECT api_key_hash FROM users")
        (stored,) = await cursor.fetchone()
    assert stored == hash_api_key(api_key)
    assert stored != api_key


@pytest.mark.asyncio
async def test_duplicate_email_rejected(substrate):
    await substrate.users.create_user("ada@example.com", "Ada")
    with pytest.raises(UserExistsError):
        await substrate.users.create_user("ADA@example.com", "Ada again")


@pytest.mark.asyncio
async def test_rotate_key_invalidates_old(substrate):
    user, old_key = await substrate.users.create_user("ada@example.com", "Ada")
    new_key = await substrate.users.rotate_api_key(user.user_id)

    assert new_key != old_key
    assert await substrate.users.get_by_api_key(old_key) is None
    assert (await substrate.users.get_by_api_key(new_key)).user_id == user.user_id


@pytest.mark.asyncio
async def test_rotate_unknown_user(substrate):
    with pytest.raises(ValueError):
        await substrate.users.rotate_api_key("usr_missing")


@pytest.mark.asyncio
async def test_preferences_and_stats(substrate):
    user, _ = await substrate.users.create_user("ada@example.com", "Ada")
    prefs = UserPreferences(
        default_tone=Tone.PUNCHY,
        default_platforms=[Platform.LINKEDIN],
        default_hashtags=["ai"],
    )
    await substrate.users.update_preferences(user.user_id, prefs)
    await substrate.users.increment_generations(user.user_id)
    await substrate.users.increment_generations(user.user_id)
    await substrate.users.touch_login(user.user_id)

    loaded = await substrate.users.get_by_email("ada@example.com")
    assert loaded.preferences == prefs
    assert loaded.stats.total_generations == 2
    assert loaded.stats.last_generated_at is not None
    assert loaded.last_login_at is not None


@pytest.mark.asyncio
async def test_ping(substrate):
    assert substrate.connected is True
    assert await substrate.ping() is True
