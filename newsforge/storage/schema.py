"""Table creation for a fresh database."""

import logging

from newsforge.runs.repository import RunsRepository
from newsforge.sources.repository import SourcesRepository
from newsforge.storage.database import Database
from newsforge.storage.repository import RawItemRepository

logger = logging.getLogger(__name__)


async def init_schema(database: Database) -> None:
    """Create sources, runs and raw_headlines tables (idempotent, dependency order)."""
    await SourcesRepository(database).create_table()
    await RunsRepository(database).create_table()
    await RawItemRepository(database).create_table()
    logger.info("Database schema initialized")
