"""Connection lifecycle for the SQLite reading store."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from energy_ledger.db.migrations import run_migrations

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=FULL",
    "PRAGMA busy_timeout=5000",
)

_db: aiosqlite.Connection | None = None


async def init_db(db_path: str | Path) -> aiosqlite.Connection:
    """Open (creating if needed) the store at *db_path* and migrate it.

    The connection becomes the process-wide one returned by :func:`get_db`.
    """
    global _db
    target = str(db_path)
    if target != MEMORY:
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    db = await aiosqlite.connect(target)
    db.row_factory = aiosqlite.Row
    try:
        for pragma in _PRAGMAS:
            await db.execute(pragma)
        await run_migrations(db)
    except Exception:
        await db.close()
        raise

    _db = db
    logger.info("Reading store opened at %s", target)
    return db


async def get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Database not initialised. Call init_db() first.")
    return _db


async def close_db() -> None:
    global _db
    if _db is None:
        return
    await _db.close()
    _db = None
    logger.info("Reading store closed")
