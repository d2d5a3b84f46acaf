# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""SQLite-backed key-value store for the industry config document.

Uses ``aiosqlite`` with a single long-lived connection. WAL journal mode
enables concurrent reads with serialized writes. Schema versioned via
``PRAGMA user_version``.

Driver errors on get/put surface as ``KVStoreError``.
"""

from __future__ import annotations

import time
from contextlib import suppress
from pathlib import Path

import aiosqlite

from industrylock.errors import KVStoreError

_SCHEMA_VERSION = 1

_CREATE_KV = """
CREATE TABLE IF NOT EXISTS kv (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at REAL NOT NULL
)
"""


class SqliteKVStore:
    """SQLite-backed store implementing ``KVStoreProtocol``.

    Use the ``create()`` async classmethod factory; never instantiate directly.
    """

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    @classmethod
    async def create(cls, db_path: str | Path) -> SqliteKVStore:
        """Open (or create) a SQLite database and initialise the schema.

        Resolves ``~`` and creates parent directories automatically.

        Raises:
            ValueError: If the existing database has a newer schema version.
        """
        path = Path(db_path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)

        db = await aiosqlite.connect(str(path))
        try:
            await db.execute("PRAGMA journal_mode = WAL")

            cursor = await db.execute("PRAGMA user_version")
            row = await cursor.fetchone()
            current_version = row[0] if row else 0

            if current_version > _SCHEMA_VERSION:
                raise ValueError(
                    f"Database schema version {current_version} is newer than supported version {_SCHEMA_VERSION}"
                )

            if current_version < _SCHEMA_VERSION:
                await db.execute(_CREATE_KV)
                await db.execute(f"PRAGMA user_version = {_SCHEMA_VERSION}")
                await db.commit()
        except BaseException:
            await db.close()
            raise

        return cls(db)

    async def get(self, key: str) -> str | None:
        """Return the stored value, or ``None`` if the key is absent."""
        try:
            cursor = await self._db.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = await cursor.fetchone()
        except (aiosqlite.Error, ValueError) as e:
            raise KVStoreError(f"kv get {key!r} failed: {e}") from e
        return row[0] if row else None

    async def put(self, key: str, value: str) -> None:
        """Insert or replace *key*."""
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, time.time()),
            )
            await self._db.commit()
        except (aiosqlite.Error, ValueError) as e:
            raise KVStoreError(f"kv put {key!r} failed: {e}") from e

    async def close(self) -> None:
        """Close the database connection. Idempotent."""
        with suppress(Exception):
            await self._db.close()
