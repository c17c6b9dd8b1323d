# owns the sqlite file behind the auth and store clients
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row
from typing import Optional

import aiosqlite

from utils.config import get_settings
from utils.logger import get_logger

_logger = get_logger(__name__)

_DB_DIR = os.path.dirname(os.path.abspath(__file__))

DB_PATH = get_settings().db_path
SCHEMA_SCRIPT = os.path.join(_DB_DIR, "tables.sql")
SEED_SCRIPT = os.path.join(_DB_DIR, "seed-data.sql")
SEED_DATA = True

REQUIRED_TABLES = ("users", "auth_sessions", "profiles", "products", "shipments")

_initialized = False
_init_lock: Optional[asyncio.Lock] = None
_init_loop: Optional[asyncio.AbstractEventLoop] = None


def _get_init_lock() -> asyncio.Lock:
    """The init lock of the running loop; a new loop gets a new lock."""
    global _init_lock, _init_loop
    loop = asyncio.get_running_loop()
    if _init_lock is None or _init_loop is not loop:
        _init_lock = asyncio.Lock()
        _init_loop = loop
    return _init_lock


async def _missing_tables(conn: aiosqlite.Connection) -> set:
    marks = ", ".join("?" for _ in REQUIRED_TABLES)
    cur = await conn.execute(
        f"SELECT name FROM sqlite_master WHERE type = 'table' AND name IN ({marks});",
        REQUIRED_TABLES,
    )
    found = {row["name"] for row in await cur.fetchall()}
    await cur.close()
    return set(REQUIRED_TABLES) - found


async def _run_script(conn: aiosqlite.Connection, path: str) -> None:
    _logger.info(f"Running {os.path.basename(path)}...")
    with open(path, "r") as f:
        await conn.executescript(f.read())


async def _ensure_schema(conn: aiosqlite.Connection) -> None:
    missing = await _missing_tables(conn)
    if not missing:
        return
    # a fresh file also gets the demo rows; a partial one only the tables
    fresh = len(missing) == len(REQUIRED_TABLES)
    _logger.info(f"Creating tables: {', '.join(sorted(missing))}")
    await _run_script(conn, SCHEMA_SCRIPT)
    if fresh and SEED_DATA:
        await _run_script(conn, SEED_SCRIPT)
    await conn.commit()


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Yield a connection with row access by name and foreign keys on.

    The first connection of the process creates any missing table.
    """
    global _initialized
    os.makedirs(os.path.dirname(os.path.abspath(DB_PATH)), exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row
    await conn.execute("PRAGMA foreign_keys = ON;")
    try:
        if not _initialized:
            async with _get_init_lock():
                if not _initialized:
                    await _ensure_schema(conn)
                    _initialized = True
        yield conn
    finally:
        await conn.close()
