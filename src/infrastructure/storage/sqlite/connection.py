"""
aiosqlite connection pool for the ledger database.

Every store call borrows one pooled connection and commits on its own;
multi-step operations are made safe by compensation, not by one long
transaction.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings
from src.config.settings import StorageSettings
from src.core.exceptions import DatabaseError

logger = get_logger(__name__)

# Applied to every new connection; busy_timeout is appended per pool
_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """
    Fixed-size pool of ledger connections.

    A caller that waits longer than `acquire_timeout` seconds for a free
    connection gets a DatabaseError instead of hanging while it holds
    aggregate locks.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
        acquire_timeout: float | None = 30.0,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout
        self.acquire_timeout = acquire_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._opened = False
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, storage: StorageSettings) -> "ConnectionPool":
        return cls(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
            acquire_timeout=storage.acquire_timeout,
        )

    @property
    def is_open(self) -> bool:
        return self._opened

    @property
    def available(self) -> int:
        """Connections currently idle."""
        return self._idle.qsize()

    async def open(self) -> None:
        """Open `pool_size` connections. Safe to call more than once."""
        async with self._lock:
            if self._opened:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await self._connect()
                self._connections.append(conn)
                self._idle.put_nowait(conn)

            self._opened = True
            logger.info(
                "connection_pool_opened",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in (*_PRAGMAS, f"PRAGMA busy_timeout={self.busy_timeout}"):
            await conn.execute(pragma)
        conn.row_factory = aiosqlite.Row
        return conn

    async def _borrow(self) -> aiosqlite.Connection:
        try:
            async with asyncio.timeout(self.acquire_timeout):
                return await self._idle.get()
        except TimeoutError as e:
            logger.error(
                "connection_pool_exhausted",
                pool_size=self.pool_size,
                acquire_timeout=self.acquire_timeout,
            )
            raise DatabaseError(
                "acquire_connection",
                f"no connection free after {self.acquire_timeout}s",
            ) from e

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection for reads; it goes back idle on exit."""
        if not self._opened:
            await self.open()

        conn = await self._borrow()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(
        self, immediate: bool = False
    ) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection for one committed write.

        Rolls back on any exception, cancellation included, so no
        half-written transaction goes back to the pool. With immediate=True
        the write lock is taken up front, so a read-then-write cannot
        interleave with another writer.
        """
        async with self.acquire() as conn:
            try:
                if immediate:
                    await conn.execute("BEGIN IMMEDIATE")
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    async def close(self) -> None:
        async with self._lock:
            while self._connections:
                await self._connections.pop().close()
            while not self._idle.empty():
                self._idle.get_nowait()
            self._opened = False
            logger.info("connection_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Process-wide pool, opened from storage settings on first use."""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_settings(get_settings().storage)
        await _pool.open()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Read connection from the process-wide pool."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction(immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
    """Write connection from the process-wide pool; commits on exit."""
    pool = await get_pool()
    async with pool.transaction(immediate=immediate) as conn:
        yield conn
