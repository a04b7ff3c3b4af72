import logging
from pathlib import Path

import aiosqlite

from postify.substrate.post_store import PostStore
from postify.substrate.user_store import UserStore

log = logging.getLogger(__name__)


class Substrate:
    """SQLite-backed persistence for users and post history."""

    def __init__(self, db_path: str = "data/postify.db") -> None:
        self.db_path = db_path
        self.users = UserStore(db_path)
        self.posts = PostStore(db_path)
        self._connected = False

    async def initialize(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        await self.users._ensure_table()
        await self.posts._ensure_table()
        self._connected = True
        log.info("substrate.initialized db=%s", self.db_path)

    async def ping(self) -> bool:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("SELECT 1")
        except aiosqlite.Error:
            log.warning("substrate.ping_failed db=%s", self.db_path)
            return False
        return True

    @property
    def connected(self) -> bool:
        return self._connected


__all__ = ["PostStore", "Substrate", "UserStore"]
