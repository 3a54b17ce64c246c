"""Schema creation and version bookkeeping for the reading store."""

from __future__ import annotations

import logging

import aiosqlite

from energy_ledger.db.models import SCHEMA_VERSION, TABLES

logger = logging.getLogger(__name__)


async def schema_version(db: aiosqlite.Connection) -> int:
    """Stored schema version; 0 for a database that has never been set up."""
    async with db.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
    ) as cursor:
        if await cursor.fetchone() is None:
            return 0
    async with db.execute("SELECT version FROM schema_version WHERE id = 1") as cursor:
        row = await cursor.fetchone()
    return row[0] if row else 0


async def run_migrations(db: aiosqlite.Connection) -> None:
    """Bring the schema up to :data:`SCHEMA_VERSION`.

    Table statements are idempotent, so they run on every start and add any
    table or index a store is missing.  A store written by a newer release is
    refused rather than modified.
    """
    current = await schema_version(db)
    if current > SCHEMA_VERSION:
        raise RuntimeError(
            f"Database schema version {current} is newer than supported version {SCHEMA_VERSION}"
        )

    for statement in TABLES:
        await db.execute(statement)
    if current != SCHEMA_VERSION:
        await db.execute(
            "INSERT INTO schema_version (id, version) VALUES (1, ?) "
            "ON CONFLICT(id) DO UPDATE SET version = excluded.version",
            (SCHEMA_VERSION,),
        )
        logger.info("Database schema set to version %d (was %d)", SCHEMA_VERSION, current)
    await db.commit()
