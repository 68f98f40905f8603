"""
PostgreSQL database connection management.

Uses asyncpg for async database operations with a shared connection pool.
Driver and connection failures surface as ``StorageError`` so callers see
one exception type from the persistence layer.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any

import asyncpg

from newsforge.config.settings import get_settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A persistence operation failed."""


class Database:
    """
    Async PostgreSQL database connection manager.

    Usage:
        db = Database()
        await db.connect()

        rows = await db.fetch("SELECT * FROM sources WHERE user_id = $1", user_id)

        await db.close()
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ):
        """
        Initialize database connection manager.

        Args:
            database_url: PostgreSQL connection URL
            min_size: Minimum pool size
            max_size: Maximum pool size
        """
        settings = get_settings()

        self._database_url = database_url or str(settings.database_url)
        self._min_size = min_size or settings.db_pool_min_size
        self._max_size = max_size or settings.db_pool_max_size

        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """
        Establish database connection pool.

        Raises:
            StorageError: If the pool cannot be created
        """
        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=60,
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to connect to database: {e}")
            raise StorageError(f"Failed to connect to database: {e}") from e

        logger.info(f"Database connected (pool: {self._min_size}-{self._max_size})")

    async def close(self) -> None:
        """Close database connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        """Get connection pool, raising if not connected."""
        if self._pool is None:
            raise StorageError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection from the pool."""
        async with self.pool.acquire() as conn:
            yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query without returning results. Returns the status string."""
        try:
            async with self.acquire() as conn:
                return await conn.execute(query, *args)
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Query failed: {e}") from e

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        """Execute a query and fetch all results."""
        try:
            async with self.acquire() as conn:
                return await conn.fetch(query, *args)
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Query failed: {e}") from e

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        """Execute a query and fetch one result."""
        try:
            async with self.acquire() as conn:
                return await conn.fetchrow(query, *args)
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Query failed: {e}") from e

    async def fetchval(self, query: str, *args: Any) -> Any:
        """Execute a query and fetch a single value."""
        try:
            async with self.acquire() as conn:
                return await conn.fetchval(query, *args)
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Query failed: {e}") from e

    async def health_check(self) -> bool:
        """Check if database is reachable. Never raises."""
        try:
            result = await self.fetchval("SELECT 1")
            return result == 1
        except StorageError:
            return False
