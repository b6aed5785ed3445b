import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from jemzy.config import DB_PATH
from jemzy.errors import Transient

logger = logging.getLogger("jemzy")

_write_lock = asyncio.Lock()


def _db_dir_ensure():
    """Ensure the directory for the DB file exists."""
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def _storage_errors():
    """Surface operational SQLite failures as Transient."""
    try:
        yield
    except aiosqlite.OperationalError as e:
        logger.error(f"Storage failure: {e}")
        raise Transient(f"storage unavailable: {e}") from e


async def get_db(**kwargs) -> aiosqlite.Connection:
    """Open a new aiosqlite connection with the mandatory PRAGMAs."""
    _db_dir_ensure()
    db = await aiosqlite.connect(DB_PATH, **kwargs)
    db.row_factory = aiosqlite.Row

    pragmas = [
        "PRAGMA journal_mode=WAL",
        "PRAGMA synchronous=NORMAL",
        "PRAGMA busy_timeout=10000",
        "PRAGMA foreign_keys=ON",
        "PRAGMA temp_store=MEMORY",
        "PRAGMA cache_size=-2000",             # ~2MB RAM
    ]
    for pragma in pragmas:
        await db.execute(pragma)

    return db


async def execute_write(query: str, params: tuple = ()) -> int:
    """Execute a single write query under the write lock. Returns rowcount."""
    async with _storage_errors():
        async with _write_lock:
            db = await get_db()
            try:
                cursor = await db.execute(query, params)
                await db.commit()
                return cursor.rowcount
            finally:
                await db.close()


async def execute_write_returning(query: str, params: tuple = ()):
    """Execute a write query and return lastrowid."""
    async with _storage_errors():
        async with _write_lock:
            db = await get_db()
            try:
                cursor = await db.execute(query, params)
                await db.commit()
                return cursor.lastrowid
            finally:
                await db.close()


async def fetch_one(query: str, params: tuple = ()):
    """Fetch a single row."""
    async with _storage_errors():
        db = await get_db()
        try:
            cursor = await db.execute(query, params)
            row = await cursor.fetchone()
            return dict(row) if row else None
        finally:
            await db.close()


async def fetch_all(query: str, params: tuple = ()):
    """Fetch all rows."""
    async with _storage_errors():
        db = await get_db()
        try:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
            return [dict(r) for r in rows]
        finally:
            await db.close()


@asynccontextmanager
async def transaction():
    """
    Yield a connection inside BEGIN IMMEDIATE under the write lock.
    Commits on normal exit, rolls back on any exception.
    """
    async with _storage_errors():
        async with _write_lock:
            db = await get_db(isolation_level=None)
            try:
                await db.execute("BEGIN IMMEDIATE")
                try:
                    yield db
                except BaseException:
                    await db.execute("ROLLBACK")
                    raise
                await db.execute("COMMIT")
            finally:
                await db.close()


async def init_db():
    """Create all tables."""
    from jemzy.db.models import SCHEMA_SQL
    _db_dir_ensure()
    async with _storage_errors():
        db = await get_db()
        try:
            await db.executescript(SCHEMA_SQL)
            await db.commit()
        finally:
            await db.close()
