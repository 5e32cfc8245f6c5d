"""Async Data Access Layer for the KV_STORE table.

Provides KeyValueDAL with async get/set operations compatible with
`utils.database_init.AsyncDatabaseInitializer`. Values are stored as text;
callers own serialization.
"""

from __future__ import annotations

import time
from typing import Optional

from utils.database_init import AsyncDatabaseInitializer


class KeyValueDAL:
    """Data access layer for named records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`). Errors from SQLite propagate to the caller.
    """

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored text for `key`, or None if not present."""
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT value FROM KV_STORE WHERE key = ?", (key,))
            row = await cur.fetchone()
            return row[0] if row else None

    async def set_item(self, key: str, value: str) -> None:
        """Insert or replace the record stored under `key`.

        Args:
            key: Stable record name.
            value: Serialized record body.
        """
        async with self._db.connection() as conn:
            await conn.execute(
                "INSERT INTO KV_STORE (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                (key, value, int(time.time())),
            )
            await conn.commit()
