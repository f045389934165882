"""
SQLite storage connection.

Pooled aiosqlite connections shared by all pipeline workers, with a minimal
topic version lookup and explicit write transactions.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence, Union

import aiosqlite

from ..models.errors import SetupError, TopicLookupError
from ..models.topic_models import TopicVersion

logger = logging.getLogger(__name__)


class TopicDatabase:
    """
    Connection pool over a single SQLite database file.

    Features:
    - Bounded pool of connections reused across workers
    - WAL mode so lookups never wait on a running write
    - Foreign key enforcement on every connection
    - Explicit BEGIN IMMEDIATE / COMMIT / ROLLBACK transactions
    """

    dialect = "sqlite"
    driver_errors = (aiosqlite.Error,)

    def __init__(
        self,
        database_path: Union[str, Path],
        timeout: float = 30.0,
        max_connections: int = 10,
        enable_wal_mode: bool = True,
    ):
        """
        Initialize the database handle. No connection is opened here.

        Args:
            database_path: Path to the SQLite database file
            timeout: Seconds a statement waits for a lock held by another writer
            max_connections: Maximum number of simultaneously open connections
            enable_wal_mode: Enable write-ahead logging
        """
        self.database_path = Path(database_path).expanduser()
        self.timeout = timeout
        self.max_connections = max_connections
        self.enable_wal_mode = enable_wal_mode

        self._idle_connections: List[aiosqlite.Connection] = []
        self._open_connections = 0
        self._pool_lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(max_connections)

        self._initialized = False

    async def initialize(self) -> None:
        """Open the first connection and make sure the database answers."""
        if self._initialized:
            return

        try:
            conn = await self._open_connection()
            async with conn.execute("SELECT 1") as cursor:
                await cursor.fetchone()
        except aiosqlite.Error as e:
            raise SetupError(
                f"could not connect to database {self.database_path}: {e}"
            ) from e

        self._idle_connections.append(conn)
        self._initialized = True
        logger.info(f"Connected to database {self.database_path}")

    async def close(self) -> None:
        """Close every pooled connection."""
        async with self._pool_lock:
            for conn in self._idle_connections:
                await conn.close()
            self._idle_connections.clear()
            self._open_connections = 0

        self._initialized = False
        logger.debug(f"Closed database {self.database_path}")

    @property
    def location(self) -> str:
        return str(self.database_path)

    async def __aenter__(self) -> "TopicDatabase":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _open_connection(self) -> aiosqlite.Connection:
        # isolation_level=None leaves transaction control to transaction()
        conn = await aiosqlite.connect(
            self.database_path, timeout=self.timeout, isolation_level=None
        )
        try:
            if self.enable_wal_mode:
                await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA synchronous=NORMAL")
            await conn.execute("PRAGMA foreign_keys=ON")
        except aiosqlite.Error:
            await conn.close()
            raise

        self._open_connections += 1
        return conn

    async def _acquire(self) -> aiosqlite.Connection:
        async with self._pool_lock:
            if self._idle_connections:
                return self._idle_connections.pop()
            return await self._open_connection()

    async def _release(self, conn: aiosqlite.Connection) -> None:
        if conn.in_transaction:
            logger.warning("Connection returned with an open transaction, rolling back")
            try:
                await conn.execute("ROLLBACK")
            except aiosqlite.Error as e:
                logger.error(f"Discarding connection after failed rollback: {e}")
                await conn.close()
                async with self._pool_lock:
                    self._open_connections -= 1
                return

        async with self._pool_lock:
            self._idle_connections.append(conn)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a pooled connection for the duration of the block."""
        if not self._initialized:
            raise SetupError("Database is not initialized")

        async with self._slots:
            conn = await self._acquire()
            try:
                yield conn
            finally:
                await self._release(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Run the block inside one write transaction.

        The write lock is taken up front (BEGIN IMMEDIATE). Any exception
        rolls the transaction back and is re-raised.
        """
        async with self.connection() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")

    async def execute(
        self, conn: aiosqlite.Connection, query: str, params: Sequence[Any] = ()
    ) -> None:
        await conn.execute(query, params)

    async def executemany(
        self, conn: aiosqlite.Connection, query: str, rows: Iterable[Sequence[Any]]
    ) -> None:
        await conn.executemany(query, rows)

    async def find_topic_version(self, topic_id: int) -> Optional[TopicVersion]:
        """
        Fetch the identity and update timestamp of a stored topic.

        Returns:
            The stored version, or None when the topic was never written

        Raises:
            TopicLookupError: If the query itself fails
        """
        try:
            async with self.connection() as conn:
                async with conn.execute(
                    "SELECT id, updated_at FROM topics WHERE id = ?", (topic_id,)
                ) as cursor:
                    row = await cursor.fetchone()
        except (aiosqlite.Error, OverflowError) as e:
            raise TopicLookupError(
                f"could not read topic {topic_id} from database: {e}",
                topic_id=topic_id,
                original_error=e,
            ) from e

        if row is None:
            return None
        return TopicVersion(id=row[0], updated_at=row[1])

    async def list_tables(self) -> List[str]:
        async with self.connection() as conn:
            async with conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ) as cursor:
                return [row[0] for row in await cursor.fetchall()]

    async def count_rows(self, tables: List[str]) -> Dict[str, int]:
        """Row count per table, used for run summaries."""
        counts = {}
        async with self.connection() as conn:
            for table in tables:
                # Table names come from the fixed schema, never from input
                async with conn.execute(f'SELECT COUNT(*) FROM "{table}"') as cursor:
                    row = await cursor.fetchone()
                    counts[table] = row[0]
        return counts

    def get_statistics(self) -> Dict[str, int]:
        return {
            "open_connections": self._open_connections,
            "idle_connections": len(self._idle_connections),
            "max_connections": self.max_connections,
        }
