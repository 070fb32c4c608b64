"""Async SQLite database manager for rate persistence.

Uses aiosqlite for non-blocking database operations with WAL mode so the
query side can read while the ingestion loops write.
"""

import os
from typing import Self

import aiosqlite

from fxrates.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS live_rates (
    base_currency TEXT NOT NULL,
    quote_currency TEXT NOT NULL,
    source TEXT NOT NULL,
    rate TEXT NOT NULL,
    change_24h TEXT,
    high_24h TEXT,
    low_24h TEXT,
    volume_24h TEXT,
    market_cap TEXT,
    is_fallback INTEGER NOT NULL DEFAULT 0,
    last_updated REAL NOT NULL,
    PRIMARY KEY (base_currency, quote_currency, source)
);

CREATE TABLE IF NOT EXISTS rate_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    base_currency TEXT NOT NULL,
    quote_currency TEXT NOT NULL,
    source TEXT NOT NULL,
    rate TEXT NOT NULL,
    high TEXT,
    low TEXT,
    volume TEXT,
    timestamp REAL NOT NULL,
    interval TEXT NOT NULL,
    is_fallback INTEGER NOT NULL DEFAULT 0
);
"""

_CREATE_INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_live_pair_updated
    ON live_rates(base_currency, quote_currency, last_updated);

CREATE INDEX IF NOT EXISTS idx_history_pair_interval_ts
    ON rate_history(base_currency, quote_currency, interval, timestamp);
"""


class RateDatabase:
    """Async SQLite connection manager for the rate tables.

    Usage:
        async with RateDatabase("data/rates.db") as database:
            repository = SqliteRateRepository(database)
    """

    def __init__(self, db_path: str = "data/rates.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        """Open the connection, set pragmas and create the schema."""
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        self._connection.row_factory = aiosqlite.Row

        if self._db_path != ":memory:":
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA synchronous=NORMAL")

        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.executescript(_CREATE_INDEXES_SQL)
        await self._ensure_schema_version()
        await self._connection.commit()

        logger.info("rate_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("rate_db_closed", db_path=self._db_path)

    async def _ensure_schema_version(self) -> None:
        db = self.db
        cursor = await db.execute("SELECT version FROM schema_version LIMIT 1")
        row = await cursor.fetchone()
        if row is None:
            await db.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            logger.info("schema_version_set", version=SCHEMA_VERSION)
        elif row[0] != SCHEMA_VERSION:
            logger.warning(
                "schema_version_mismatch",
                found=row[0],
                expected=SCHEMA_VERSION,
            )

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
