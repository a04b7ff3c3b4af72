"""User accounts and API keys persisted to SQLite.

API keys are stored as SHA-256 hashes to avoid plaintext exposure; the
plaintext key is only returned once, at creation or rotation.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import uuid
from datetime import UTC, datetime

import aiosqlite

from postify.errors import UserExistsError
from postify.models.user import UserPreferences, UserRecord, UserStats

log = logging.getLogger(__name__)

_COLUMNS = (
    "user_id, email, name, picture, preferences, total_generations, "
    "last_generated_at, created_at, last_login_at"
)


def generate_api_key() -> str:
    return f"pf_{secrets.token_urlsafe(32)}"


def hash_api_key(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()


class UserStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._initialized = False

    async def _ensure_table(self) -> None:
        if self._initialized:
            return
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    user_id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    picture TEXT NOT NULL DEFAULT '',
                    api_key_hash TEXT NOT NULL UNIQUE,
                    preferences TEXT NOT NULL DEFAULT '{}',
                    total_generations INTEGER NOT NULL DEFAULT 0,
                    last_generated_at TEXT,
                    created_at TEXT NOT NULL,
                    last_login_at TEXT
                )
            """)
            await db.commit()
        self._initialized = True

    async def create_user(
        self,
        email: str,
        name: str,
        picture: str = "",
    ) -> tuple[UserRecord, str]:
        """Create a user and return it with its plaintext API key.

        Raises:
            UserExistsError: if the email is already registered.
        """
        await self._ensure_table()
        email = email.strip().lower()
        api_key = generate_api_key()
        user = UserRecord(
            user_id=f"usr_{uuid.uuid4().hex[:16]}",
            email=email,
            name=name,
            picture=picture,
            created_at=datetime.now(UTC),
        )

        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute("SELECT 1 FROM users WHERE email = ?", (email,))
            if await cursor.fetchone():
                raise UserExistsError(f"User {email} already exists")

            await db.execute(
                "INSERT INTO users (user_id, email, name, picture, api_key_hash, "
                "preferences, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    user.user_id,
                    email,
                    name,
                    picture,
                    hash_api_key(api_key),
                    user.preferences.model_dump_json(),
                    user.created_at.isoformat(),
                ),
            )
            await db.commit()

        log.info("Created user %s (%s)", user.user_id, email)
        return user, api_key

    async def get_user(self, user_id: str) -> UserRecord | None:
        return await self._fetch_one("user_id = ?", user_id)

    async def get_by_email(self, email: str) -> UserRecord | None:
        return await self._fetch_one("email = ?", email.strip().lower())

    async def get_by_api_key(self, api_key: str) -> UserRecord | None:
        return await self._fetch_one("api_key_hash = ?", hash_api_key(api_key))

    async def touch_login(self, user_id: str) -> None:
        await self._ensure_table()
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "UPDATE users SET last_login_at = ? WHERE user_id = ?",
                (datetime.now(UTC).isoformat(), user_id),
            )
            await db.commit()

    async def update_preferences(
        self, user_id: str, prefs: UserPreferences
    ) -> UserPreferences:
        """Replace stored preferences.

        Raises:
            ValueError: if user not found.
        """
        await self._ensure_table()
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                "UPDATE users SET preferences = ? WHERE user_id = ?",
                (prefs.model_dump_json(), user_id),
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise ValueError(f"User {user_id} not found")
        log.info("Updated preferences for user %s", user_id)
        return prefs

    async def increment_generations(self, user_id: str) -> None:
        await self._ensure_table()
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "UPDATE users SET total_generations = total_generations + 1, "
                "last_generated_at = ? WHERE user_id = ?",
                (datetime.now(UTC).isoformat(), user_id),
            )
            await db.commit()

    async def rotate_api_key(self, user_id: str) -> str:
        """Issue a new API key, invalidating the old one.

        Raises:
            ValueError: if user not found.
        """
        await self._ensure_table()
        api_key = generate_api_key()
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                "UPDATE users SET api_key_hash = ? WHERE user_id = ?",
                (hash_api_key(api_key), user_id),
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise ValueError(f"User {user_id} not found")
        log.info("Rotated API key for user %s", user_id)
        return api_key

    async def _fetch_one(self, where: str, value: str) -> UserRecord | None:
        await self._ensure_table()
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {where}",
                (value,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def _row_to_user(self, row: tuple) -> UserRecord:
        return UserRecord(
            user_id=row[0],
            email=row[1],
            name=row[2],
            picture=row[3] or "",
            preferences=UserPreferences.model_validate_json(row[4] or "{}"),
            stats=UserStats(
                total_generations=row[5] or 0,
                last_generated_at=datetime.fromisoformat(row[6]) if row[6] else None,
            ),
            created_at=datetime.fromisoformat(row[7]),
            last_login_at=datetime.fromisoformat(row[8]) if row[8] else None,
        )
