"""Tests for post history persistence."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from postify.errors import PostNotFoundError
from postify.models.post import (
    ArticleSnapshot,
    GenerationParameters,
    Platform,
    PostRecord,
    Tone,
)
from postify.substrate import Substrate

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
async def substrate(tmp_path):
    s = Substrate(str(tmp_path / "postify.db"))
    await s.initialize()
    return s


def _post(user_id: str, n: int) -> PostRecord:
    return PostRecord(
        user_id=user_id,
        article=ArticleSnapshot(url=f"https://example.com/{n}", title=f"Article {n}"),
        parameters=GenerationParameters(
            tone=Tone.WITTY,
            platforms=[Platform.TWITTER],
            hashtags=["news"],
        ),
        generated_posts={"twitter": f"post {n}"},
        model_id="a/model:free",
        created_at=T0 + timedelta(minutes=n),
    )


@pytest.mark.asyncio
async def test_save_and_get_round_trip(substrate):
    post = await substrate.posts.save(_post("usr_1", 1))
    loaded = await substrate.posts.get("usr_1", post.post_id)

    assert loaded is not None
    assert loaded.article.title == "Article 1"
    assert loaded.parameters.tone == Tone.WITTY
    assert loaded.generated_posts == {"twitter": "post 1"}
    assert loaded.created_at == T0 + timedelta(minutes=1)


@pytest.mark.asyncio
async def test_get_is_scoped_to_owner(substrate):
    post = await substrate.posts.save(_post("usr_1", 1))
    assert await substrate.posts.get("usr_2", post.post_id) is None


@pytest.mark.asyncio
async def test_list_newest_first_with_pagination(substrate):
    for n in range(5):
        await substrate.posts.save(_post("usr_1", n))
    await substrate.posts.save(_post("usr_2", 99))

    page1 = await substrate.posts.list_for_user("usr_1", page=1, limit=2)
    page3 = await substrate.posts.list_for_user("usr_1", page=3, limit=2)

    assert [p.article.title for p in page1.posts] == ["Article 4", "Article 3"]
    assert [p.article.title for p in page3.posts] == ["Article 0"]
    assert page1.total == 5
    assert page1.pages == 3


@pytest.mark.asyncio
async def test_favorite_toggle_and_filter(substrate):
    a = await substrate.posts.save(_post("usr_1", 1))
    await substrate.posts.save(_post("usr_1", 2))

    toggled = await substrate.posts.toggle_favorite("usr_1", a.post_id)
    assert toggled.favorited is True
    assert toggled.favorited_at is not None

    favorites = await substrate.posts.list_for_user("usr_1", favorited=True)
    assert [p.post_id for p in favorites.posts] == [a.post_id]

    untoggled = await substrate.posts.toggle_favorite("usr_1", a.post_id)
    assert untoggled.favorited is False
    assert untoggled.favorited_at is None


@pytest.mark.asyncio
async def test_mark_copied_appends_events(substrate):
    post = await substrate.posts.save(_post("usr_1", 1))
    await substrate.posts.mark_copied("usr_1", post.post_id, Platform.TWITTER)
    await substrate.posts.mark_copied("usr_1", post.post_id, Platform.LINKEDIN)

    loaded = await substrate.posts.get("usr_1", post.post_id)
    assert [c.platform for c in loaded.copied] == [Platform.TWITTER, Platform.LINKEDIN]


@pytest.mark.asyncio
async def test_missing_post_raises(substrate):
    with pytest.raises(PostNotFoundError):
        await substrate.posts.toggle_favorite("usr_1", "post_missing")
    with pytest.raises(PostNotFoundError):
        await substrate.posts.mark_copied("usr_1", "post_missing", Platform.TWITTER)


@pytest.mark.asyncio
async def test_delete(substrate):
    post = await substrate.posts.save(_post("usr_1", 1))
    assert await substrate.posts.delete("usr_2", post.post_id) is False
    assert await substrate.posts.delete("usr_1", post.post_id) is True
    assert await substrate.posts.get("usr_1", post.post_id) is None
