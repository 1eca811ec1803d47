"""Key-value store access for the profile and source collections.

The management side persists two JSON collections: the list of profiles and
the shared list of subscription sources (remote feeds and manual nodes). The
pipeline only reads them, through any object with ``async get(key)``.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

import aiosqlite
from pydantic import ValidationError

from .config import Settings
from .exceptions import StorageError
from .models import Profile, Source

logger = logging.getLogger(__name__)


class Store(Protocol):
    async def get(self, key: str) -> Any:
        ...


class MemoryStore:
    """A dictionary-backed store, used by default and in tests."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            self._data[key] = json.loads(json.dumps(value))

    async def get(self, key: str) -> Any:
        value = self._data.get(key)
        # Hand out copies so callers cannot mutate the stored document.
        return json.loads(json.dumps(value)) if value is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.loads(json.dumps(value))


class SqliteStore:
    """
    A store keeping JSON documents in a single SQLite table.

    Usage:
        store = SqliteStore("data/subfusion.db")
        await store.connect()
        await store.set("subfusion:profiles", [...])
        await store.close()
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        if self.conn is not None:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = await aiosqlite.connect(self.db_path)
            await self.conn.execute(
                "CREATE TABLE IF NOT EXISTS kv_store (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
            await self.conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise StorageError(f"Could not open store at {self.db_path}: {exc}") from exc

    async def close(self) -> None:
        if self.conn:
            await self.conn.close()
            self.conn = None

    async def __aenter__(self) -> "SqliteStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _ensure_connected(self) -> aiosqlite.Connection:
        if self.conn is None:
            await self.connect()
        assert self.conn is not None
        return self.conn

    async def get(self, key: str) -> Any:
        conn = await self._ensure_connected()
        try:
            async with conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StorageError(f"Failed to read key {key!r}: {exc}") from exc
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stored value for {key!r} is not valid JSON") from exc

    async def set(self, key: str, value: Any) -> None:
        conn = await self._ensure_connected()
        try:
            await conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                (key, json.dumps(value, ensure_ascii=False)),
            )
            await conn.commit()
        except aiosqlite.Error as exc:
            raise StorageError(f"Failed to write key {key!r}: {exc}") from exc


def create_store(settings: Settings):
    """Build the store configured under ``storage.backend``."""
    if settings.storage.backend == "sqlite":
        return SqliteStore(settings.storage.sqlite_path)
    return MemoryStore()


def _validate_records(raw: Any, model, label: str) -> List[Any]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Stored %s collection is not a list; ignoring it", label)
        return []
    records = []
    for index, item in enumerate(raw):
        try:
            records.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s record #%d: %s", label, index, exc.error_count())
    return records


async def load_collections(
    store: Store, settings: Optional[Settings] = None
) -> Tuple[List[Profile], List[Source]]:
    """
    Read and validate the profile and source collections.

    Missing collections read as empty; malformed records are skipped.
    """
    settings = settings or Settings()
    raw_profiles = await store.get(settings.storage.profiles_key)
    raw_sources = await store.get(settings.storage.subscriptions_key)
    profiles = _validate_records(raw_profiles, Profile, "profile")
    sources = _validate_records(raw_sources, Source, "source")
    logger.debug("Loaded %d profiles and %d sources", len(profiles), len(sources))
    return profiles, sources
