"""Per-user post history persisted to SQLite."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import aiosqlite

from postify.errors import PostNotFoundError
from postify.models.post import (
    ArticleSnapshot,
    CopyEvent,
    GenerationParameters,
    Platform,
    PostPage,
    PostRecord,
)

log = logging.getLogger(__name__)

_COLUMNS = (
    "post_id, user_id, article, parameters, generated_posts, model_id, "
    "favorited, favorited_at, copied, created_at"
)


class PostStore:
    """Stores generated posts; every query is scoped to the owning user."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._initialized = False

    async def _ensure_table(self) -> None:
        if self._initialized:
            return
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS posts (
                    post_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    article TEXT NOT NULL,
                    parameters TEXT NOT NULL,
                    generated_posts TEXT NOT NULL DEFAULT '{}',
                    model_id TEXT NOT NULL DEFAULT '',
                    favorited INTEGER NOT NULL DEFAULT 0,
                    favorited_at TEXT,
                    copied TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL
                )
            """)
            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_posts_user_created
                ON posts(user_id, created_at DESC)
            """)
            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_posts_favorited
                ON posts(user_id, favorited)
            """)
            await db.commit()
        self._initialized = True

    async def save(self, post: PostRecord) -> PostRecord:
        await self._ensure_table()
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                f"INSERT INTO posts ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    post.post_id,
                    post.user_id,
                    post.article.model_dump_json(),
                    post.parameters.model_dump_json(),
                    json.dumps(post.generated_posts),
                    post.model_id,
                    int(post.favorited),
                    post.favorited_at.isoformat() if post.favorited_at else None,
                    json.dumps([c.model_dump(mode="json") for c in post.copied]),
                    post.created_at.isoformat(),
                ),
            )
            await db.commit()
        log.info("post_store.saved post_id=%s user_id=%s", post.post_id, post.user_id)
        return post

    async def list_for_user(
        self,
        user_id: str,
        *,
        page: int = 1,
        limit: int = 10,
        favorited: bool | None = None,
    ) -> PostPage:
        """Newest first, paginated. ``favorited=True`` keeps only favorites."""
        await self._ensure_table()
        page = max(page, 1)
        limit = max(limit, 1)

        where = "WHERE user_id = ?"
        params: list[object] = [user_id]
        if favorited:
            where += " AND favorited = 1"

        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(f"SELECT COUNT(*) FROM posts {where}", params)
            row = await cursor.fetchone()
            total = int(row[0]) if row else 0

            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM posts {where} "
                "ORDER BY created_at DESC LIMIT ? OFFSET ?",
                [*params, limit, (page - 1) * limit],
            )
            rows = await cursor.fetchall()

        return PostPage(
            posts=[self._row_to_post(r) for r in rows],
            page=page,
            limit=limit,
            total=total,
        )

    async def get(self, user_id: str, post_id: str) -> PostRecord | None:
        await self._ensure_table()
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM posts WHERE post_id = ? AND user_id = ?",
                (post_id, user_id),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_post(row)

    async def _require(self, user_id: str, post_id: str) -> PostRecord:
        post = await self.get(user_id, post_id)
        if post is None:
            raise PostNotFoundError("Post not found", context={"post_id": post_id})
        return post

    async def mark_copied(self, user_id: str, post_id: str, platform: Platform) -> PostRecord:
        """Append a copy event for ``platform``.

        Raises:
            PostNotFoundError: if the post does not exist for this user.
        """
        post = await self._require(user_id, post_id)
        post.copied.append(CopyEvent(platform=platform))
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "UPDATE posts SET copied = ? WHERE post_id = ? AND user_id = ?",
                (
                    json.dumps([c.model_dump(mode="json") for c in post.copied]),
                    post_id,
                    user_id,
                ),
            )
            await db.commit()
        log.info("post_store.copied post_id=%s platform=%s", post_id, platform.value)
        return post

    async def toggle_favorite(self, user_id: str, post_id: str) -> PostRecord:
        """Flip the favorite flag; ``favorited_at`` is set or cleared with it.

        Raises:
            PostNotFoundError: if the post does not exist for this user.
        """
        post = await self._require(user_id, post_id)
        post.favorited = not post.favorited
        post.favorited_at = datetime.now(UTC) if post.favorited else None
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "UPDATE posts SET favorited = ?, favorited_at = ? "
                "WHERE post_id = ? AND user_id = ?",
                (
                    int(post.favorited),
                    post.favorited_at.isoformat() if post.favorited_at else None,
                    post_id,
                    user_id,
                ),
            )
            await db.commit()
        return post

    async def delete(self, user_id: str, post_id: str) -> bool:
        """Delete a post. Returns True if it existed for this user."""
        await self._ensure_table()
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                "DELETE FROM posts WHERE post_id = ? AND user_id = ?",
                (post_id, user_id),
            )
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            log.info("post_store.deleted post_id=%s", post_id)
        return deleted

    def _row_to_post(self, row: tuple) -> PostRecord:
        return PostRecord(
            post_id=row[0],
            user_id=row[1],
            article=ArticleSnapshot.model_validate_json(row[2]),
            parameters=GenerationParameters.model_validate_json(row[3]),
            generated_posts=json.loads(row[4]) if row[4] else {},
            model_id=row[5] or "",
            favorited=bool(row[6]),
            favorited_at=datetime.fromisoformat(row[7]) if row[7] else None,
            copied=[CopyEvent.model_validate(c) for c in json.loads(row[8] or "[]")],
            created_at=datetime.fromisoformat(row[9]),
        )
