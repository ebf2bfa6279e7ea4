"""
Async SQLite connection pool with aiosqlite.

Provides connection management with proper async context handling.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from partstock.config import get_logger, get_settings
from partstock.core.exceptions import DatabaseBusyError

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


class ConnectionPool:
    """
    Async SQLite connection pool.

    Manages a pool of connections with configurable size.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()
        self._resets: set[asyncio.Task[None]] = set()

    async def initialize(self) -> None:
        """Initialize the connection pool."""
        async with self._lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await self._create_connection()
                self._connections.append(conn)
                await self._pool.put(conn)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _create_connection(self) -> aiosqlite.Connection:
        """Create a new database connection with optimized settings."""
        conn = await aiosqlite.connect(self.db_path)

        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        await conn.execute("PRAGMA foreign_keys=ON")

        conn.row_factory = aiosqlite.Row

        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection from the pool.

        Usage:
            async with pool.acquire() as conn:
                await conn.execute(...)

        A holder cancelled mid-request may leave statements queued on the
        connection's worker thread. Such a connection rejoins the pool only
        after those have run and been rolled back.
        """
        if not self._initialized:
            await self.initialize()

        conn = await self._pool.get()
        cancelled = False
        try:
            yield conn
        except asyncio.CancelledError:
            cancelled = True
            raise
        finally:
            if cancelled:
                self._reset_later(conn)
            else:
                self._pool.put_nowait(conn)

    def _reset_later(self, conn: aiosqlite.Connection) -> None:
        task = asyncio.get_running_loop().create_task(self._reset(conn))
        self._resets.add(task)
        task.add_done_callback(self._resets.discard)

    async def _reset(self, conn: aiosqlite.Connection) -> None:
        """Roll back after the queued requests finish, then return conn to the pool."""
        try:
            await conn.rollback()
        except (aiosqlite.Error, ValueError) as e:
            logger.warning("connection_reset_failed", error=str(e))
            if conn in self._connections:
                self._connections.remove(conn)
            await conn.close()
            if not self._initialized:
                return
            conn = await self._create_connection()
            self._connections.append(conn)
        if self._initialized:
            self._pool.put_nowait(conn)
            logger.debug("connection_reset")

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection with transaction context.

        Commits on success and rolls back on any exception. With ``immediate``
        the write lock is taken up front (``BEGIN IMMEDIATE``) so two writers
        never both read the same state and then race to write it.
        Cancellation, even while waiting for the lock, is rolled back by
        ``acquire``.
        """
        async with self.acquire() as conn:
            try:
                if immediate:
                    await self._begin_immediate(conn)
                yield conn
                await conn.commit()
            except asyncio.CancelledError:
                raise
            except BaseException:
                await conn.rollback()
                raise

    @staticmethod
    async def _begin_immediate(conn: aiosqlite.Connection) -> None:
        try:
            await conn.execute("BEGIN IMMEDIATE")
        except aiosqlite.OperationalError as e:
            if "locked" in str(e) or "busy" in str(e):
                raise DatabaseBusyError("begin_immediate", str(e)) from e
            raise

    async def close(self) -> None:
        """Close all connections in the pool."""
        async with self._lock:
            if self._resets:
                await asyncio.gather(*self._resets, return_exceptions=True)
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            while not self._pool.empty():
                self._pool.get_nowait()
            self._initialized = False
            logger.info("connection_pool_closed")


# Global connection pool
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the global connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = ConnectionPool(
            db_path=settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Get a connection from the global pool."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction(immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
    """Get a connection with transaction context."""
    pool = await get_pool()
    async with pool.transaction(immediate=immediate) as conn:
        yield conn


@asynccontextmanager
async def use_connection(
    conn: aiosqlite.Connection | None = None,
) -> AsyncIterator[aiosqlite.Connection]:
    """Yield the caller's connection, or borrow one from the pool."""
    if conn is not None:
        yield conn
        return
    async with get_connection() as own:
        yield own


@asynccontextmanager
async def use_transaction(
    conn: aiosqlite.Connection | None = None,
) -> AsyncIterator[aiosqlite.Connection]:
    """Join the caller's open transaction, or run in a transaction of our own."""
    if conn is not None:
        yield conn
        return
    async with get_transaction() as own:
        yield own


def format_timestamp(value: datetime) -> str:
    """Render a datetime as a fixed-width UTC string so text order is time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
