# manages the key-value store, provides storage primitives internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from typing import Literal, Optional

import aiosqlite

from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = settings.db_path

Scope = Literal["local", "session"]

# one table per storage scope, both plain key -> json text
SCOPE_TABLES = {
    "local": "local_storage",
    "session": "session_storage",
}

_initialized = False
_init_lock = asyncio.Lock()


async def _init_db(conn: aiosqlite.Connection) -> None:
    for table in SCOPE_TABLES.values():
        _logger.info(f"Creating table {table}...")
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {table} (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
    await conn.commit()


def _table(scope: Scope) -> str:
    try:
        return SCOPE_TABLES[scope]
    except KeyError:
        raise ValueError(f"unknown storage scope: {scope!r}") from None


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Ensures the storage tables exist on first use.
    """
    global _initialized
    directory = os.path.dirname(DB_PATH)
    if directory and not os.path.isdir(directory):
        os.makedirs(directory, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                _logger.info("Initializing key-value store...")
                await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()


async def get_item(key: str, scope: Scope = "local") -> Optional[str]:
    """Return the raw stored text for key, or None when absent."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT value FROM {_table(scope)} WHERE key = ?;", (key,)
        )
        row = await cur.fetchone()
        await cur.close()
    return row[0] if row else None


async def has_item(key: str, scope: Scope = "local") -> bool:
    return await get_item(key, scope) is not None


async def set_item(key: str, value: str, scope: Scope = "local") -> None:
    async with connect() as conn:
        await conn.execute(
            f"""
            INSERT INTO {_table(scope)}(key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value;
            """,
            (key, value),
        )
        await conn.commit()


async def remove_item(key: str, scope: Scope = "local") -> None:
    async with connect() as conn:
        await conn.execute(f"DELETE FROM {_table(scope)} WHERE key = ?;", (key,))
        await conn.commit()


async def clear(scope: Scope = "local") -> None:
    """Drop every key in the given scope."""
    async with connect() as conn:
        await conn.execute(f"DELETE FROM {_table(scope)};")
        await conn.commit()
