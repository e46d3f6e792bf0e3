"""Bounded aiosqlite connection pool.

At most ``size`` connections exist at once. A caller that cannot get a
connection within ``acquire_timeout`` seconds gets StorageUnavailableError
instead of waiting forever. Connections are opened lazily and reused.

Usage:
    pool = ConnectionPool("data/zoya.db", size=5, acquire_timeout=5.0)

    async with pool.acquire() as db:
        await db.execute("SELECT 1")

    await pool.close()
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from zoya.core.errors import StorageUnavailableError
from zoya.core.logging import get_logger

logger = get_logger(__name__)


class ConnectionPool:
    """Fixed-capacity pool of configured SQLite connections.

    Attributes:
        db_path: Path to the SQLite database file
        size: Maximum number of open connections
        acquire_timeout: Seconds to wait for a free connection
        busy_timeout_ms: PRAGMA busy_timeout applied to each connection
    """

    def __init__(
        self,
        db_path: str | Path,
        size: int = 5,
        acquire_timeout: float = 5.0,
        busy_timeout_ms: int = 10000,
    ):
        if size < 1:
            raise ValueError("Pool size must be at least 1")
        self.db_path = Path(db_path)
        self.size = size
        self.acquire_timeout = acquire_timeout
        self.busy_timeout_ms = busy_timeout_ms
        self._slots = asyncio.Semaphore(size)
        self._idle: list[aiosqlite.Connection] = []
        self._open: set[aiosqlite.Connection] = set()
        self._closed = False

    @property
    def in_use(self) -> int:
        """Number of connections currently checked out."""
        return len(self._open) - len(self._idle)

    async def _connect(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self.db_path)
        try:
            await db.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
            await db.execute("PRAGMA journal_mode = WAL")
            await db.execute("PRAGMA synchronous = NORMAL")
        except aiosqlite.Error:
            await db.close()
            raise
        db.row_factory = aiosqlite.Row
        self._open.add(db)
        logger.debug("pool_connection_opened", open=len(self._open), size=self.size)
        return db

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Check out a connection for the duration of the block.

        A block that raises aiosqlite.Error gives the connection up: it is
        closed, which rolls back any open transaction, and the next checkout
        opens a fresh one.

        Raises:
            StorageUnavailableError: If the pool is closed or no connection
                frees up within acquire_timeout
        """
        if self._closed:
            raise StorageUnavailableError("Connection pool is closed", operation="acquire")

        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.acquire_timeout)
        except TimeoutError as e:
            logger.error(
                "pool_exhausted",
                size=self.size,
                timeout_seconds=self.acquire_timeout,
            )
            raise StorageUnavailableError(
                f"No database connection available within {self.acquire_timeout}s "
                f"(pool size {self.size}). Retry the request.",
                operation="acquire",
            ) from e

        try:
            db = self._idle.pop() if self._idle else await self._connect()
        except aiosqlite.Error as e:
            self._slots.release()
            logger.error("pool_connect_failed", db_path=str(self.db_path), error=str(e))
            raise StorageUnavailableError(
                f"Failed to open database connection to {self.db_path}: {e}",
                operation="acquire",
            ) from e

        broken = False
        try:
            yield db
        except aiosqlite.Error:
            broken = True
            raise
        finally:
            if self._closed or broken:
                await self._discard(db)
            else:
                self._idle.append(db)
            self._slots.release()

    async def _discard(self, db: aiosqlite.Connection) -> None:
        self._open.discard(db)
        try:
            await db.close()
        except aiosqlite.Error as e:
            logger.warning("pool_connection_close_failed", error=str(e))
        logger.debug("pool_connection_discarded", open=len(self._open), size=self.size)

    async def close(self) -> None:
        """Close every idle connection and refuse further checkouts."""
        self._closed = True
        while self._idle:
            await self._discard(self._idle.pop())
        logger.debug("pool_closed", db_path=str(self.db_path))
