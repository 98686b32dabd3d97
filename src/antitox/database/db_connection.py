"""
Database connection management: one long-lived aiosqlite connection.

SQLite performs best with a single connection kept open for the process
lifetime. WAL mode lets reads run while a write is in progress; writes are
serialised at the application layer with a semaphore so tasks queue instead
of hitting SQLite's busy timeout.

Usage
-----
    manager = ConnectionManager()
    await manager.open(path)

    async with manager.transaction() as conn:
        await conn.execute("INSERT ...")   # commits on clean exit

    async with manager.read() as conn:
        cursor = await conn.execute("SELECT ...")

    await manager.close()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from antitox.util.logger import get_logger

logger = get_logger("database_connection")

_PRAGMAS = [
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",    # safe with WAL; faster than FULL
    "PRAGMA temp_store = MEMORY",
    "PRAGMA wal_autocheckpoint = 1000",
]


class ConnectionManager:
    """
    Wrapper around a single aiosqlite connection.

    * Reads  - ``async with read()``; WAL allows concurrent reads.
    * Writes - ``async with transaction()``; serialised by ``_write_sem``,
      committed on success and rolled back on error.
    """

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._write_sem = asyncio.Semaphore(1)
        self._path: Path | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self, path: Path) -> None:
        """Open the database file (creating its directory) and apply pragmas."""
        if self._conn is not None:
            logger.warning("[DB CONNECTION] open() called but connection already exists; ignoring")
            return

        self._path = path
        path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(path)
        self._conn.row_factory = aiosqlite.Row

        for pragma in _PRAGMAS:
            await self._conn.execute(pragma)
        await self._conn.commit()

        logger.info("[DB CONNECTION] Opened connection to %s", path)

    async def close(self) -> None:
        """Flush the WAL and close the connection."""
        if self._conn is None:
            return

        try:
            await self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await self._conn.commit()
        except Exception:
            logger.exception("[DB CONNECTION] WAL checkpoint failed during close")
        finally:
            await self._conn.close()
            self._conn = None
            logger.info("[DB CONNECTION] Connection closed")

    @property
    def connection(self) -> aiosqlite.Connection:
        """
        The raw aiosqlite connection.

        Raises:
            RuntimeError: If the connection has not been opened yet.
        """
        if self._conn is None:
            raise RuntimeError("ConnectionManager: connection is not open. Call await open(path) first.")
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Serialised write transaction; commits on clean exit, rolls back on exception."""
        conn = self.connection

        async with self._write_sem:
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Read access; no semaphore is taken."""
        yield self.connection
