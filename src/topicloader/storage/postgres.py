"""
PostgreSQL storage connection.

Same surface as the SQLite TopicDatabase, backed by a psycopg connection
pool. Queries are written once with ``?`` placeholders and adapted to
psycopg's ``%s`` style here.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence

import psycopg
from psycopg_pool import AsyncConnectionPool

from ..models.errors import SetupError, TopicLookupError
from ..models.topic_models import TopicVersion

logger = logging.getLogger(__name__)

_URL_PASSWORD = re.compile(r"(://[^:/@]+:)[^@]*@")
_KEYWORD_PASSWORD = re.compile(r"(password\s*=\s*)(?:'[^']*'|\S+)")


def redact_dsn(dsn: str) -> str:
    """The DSN with any password replaced, safe for logs and error panels."""
    redacted = _URL_PASSWORD.sub(r"\1***@", dsn)
    return _KEYWORD_PASSWORD.sub(r"\1***", redacted)


def adapt_placeholders(query: str) -> str:
    """Rewrite ``?`` placeholders to the ``%s`` style psycopg expects."""
    return query.replace("?", "%s")


class PostgresTopicDatabase:
    """
    Connection pool over a PostgreSQL database.

    Connections run in autocommit mode; transaction() opens an explicit
    transaction that commits when the block exits and rolls back on error.
    """

    dialect = "postgresql"
    driver_errors = (psycopg.Error,)

    def __init__(self, dsn: str, timeout: float = 30.0, max_connections: int = 10):
        """
        Initialize the database handle. No connection is opened here.

        Args:
            dsn: libpq connection string or postgresql:// URL
            timeout: Seconds to wait for a connection from the pool
            max_connections: Maximum number of simultaneously open connections
        """
        self.dsn = dsn
        self.timeout = timeout
        self.max_connections = max_connections

        self._pool: Optional[AsyncConnectionPool] = None
        self._initialized = False

    @property
    def location(self) -> str:
        return redact_dsn(self.dsn)

    async def initialize(self) -> None:
        """Open the pool and make sure the server answers."""
        if self._initialized:
            return

        pool = AsyncConnectionPool(
            self.dsn,
            min_size=1,
            max_size=self.max_connections,
            timeout=self.timeout,
            kwargs={"autocommit": True},
            open=False,
            name="topicloader",
        )
        try:
            await pool.open(wait=True, timeout=self.timeout)
            async with pool.connection() as conn:
                await conn.execute("SELECT 1")
        except psycopg.Error as e:
            await pool.close()
            raise SetupError(f"could not connect to database {self.location}: {e}") from e

        self._pool = pool
        self._initialized = True
        logger.info(f"Connected to database {self.location}")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

        self._initialized = False
        logger.debug(f"Closed database {self.location}")

    async def __aenter__(self) -> "PostgresTopicDatabase":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        """Borrow a pooled connection for the duration of the block."""
        if not self._initialized or self._pool is None:
            raise SetupError("Database is not initialized")

        async with self._pool.connection(timeout=self.timeout) as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[psycopg.AsyncConnection]:
        """Run the block inside one transaction; any exception rolls it back."""
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def execute(
        self, conn: psycopg.AsyncConnection, query: str, params: Sequence[Any] = ()
    ) -> None:
        await conn.execute(adapt_placeholders(query), params)

    async def executemany(
        self, conn: psycopg.AsyncConnection, query: str, rows: Iterable[Sequence[Any]]
    ) -> None:
        rows = list(rows)
        if not rows:
            return

        async with conn.cursor() as cursor:
            await cursor.executemany(adapt_placeholders(query), rows)

    async def find_topic_version(self, topic_id: int) -> Optional[TopicVersion]:
        """
        Fetch the identity and update timestamp of a stored topic.

        Raises:
            TopicLookupError: If the query itself fails
        """
        try:
            async with self.connection() as conn:
                cursor = await conn.execute(
                    "SELECT id, updated_at FROM topics WHERE id = %s", (topic_id,)
                )
                row = await cursor.fetchone()
        except psycopg.Error as e:
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
            cursor = await conn.execute(
                "SELECT tablename FROM pg_catalog.pg_tables WHERE schemaname = current_schema()"
            )
            return [row[0] for row in await cursor.fetchall()]

    async def count_rows(self, tables: List[str]) -> Dict[str, int]:
        counts = {}
        async with self.connection() as conn:
            for table in tables:
                # Table names come from the fixed schema, never from input
                cursor = await conn.execute(f'SELECT COUNT(*) FROM "{table}"')
                row = await cursor.fetchone()
                counts[table] = row[0]
        return counts

    def get_statistics(self) -> Dict[str, int]:
        if self._pool is None:
            return {"open_connections": 0, "idle_connections": 0, "max_connections": self.max_connections}

        stats = self._pool.get_stats()
        return {
            "open_connections": stats.get("pool_size", 0),
            "idle_connections": stats.get("pool_available", 0),
            "max_connections": self.max_connections,
        }
