# manages the on-device sqlite file, provides helper methods internal to db package
import asyncio
import os
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = config.DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS secure_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

_initialized = False
_init_lock = asyncio.Lock()


async def _init_db(conn: aiosqlite.Connection) -> None:
    _logger.info(f"Initializing local store at {DB_PATH}...")
    await conn.executescript(SCHEMA)
    await conn.commit()


def _prepare_file(path: str) -> None:
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    if not os.path.exists(path):
        # owner read/write only, the file holds the bearer token
        fd = os.open(path, os.O_CREAT | os.O_WRONLY, 0o600)
        os.close(fd)


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Creates the file and the schema on first use.
    """
    global _initialized
    if not _initialized:
        _prepare_file(DB_PATH)
    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()
