# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Key-value store abstraction for the industry config document.

Defines ``KVStoreProtocol`` and ``InMemoryKVStore`` for single-process use
and tests. The SQLite implementation lives in ``kv_store_sqlite.py``.

The store holds one JSON document under ``KV_DOCUMENT_KEY``. Writers do a
non-transactional read-modify-write: concurrent writers race and the last
one wins. The document is a cache of classifier decisions, so a lost update
only costs one more classification later.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

KV_DOCUMENT_KEY = "industry_packs_json"


@runtime_checkable
class KVStoreProtocol(Protocol):
    """Interface for the config document store: in-memory, SQLite, or remote."""

    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str) -> None: ...

    async def close(self) -> None: ...


class InMemoryKVStore:
    """Dict-backed store. Values are kept as the raw strings written."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.writes = 0

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value
        self.writes += 1

    async def close(self) -> None:
        """No-op for in-memory store."""
