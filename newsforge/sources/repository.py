"""Database repository for the sources table."""

import json
import logging
from typing import Any

from newsforge.ingestion.schemas import SourceKind
from newsforge.sources.schemas import Source
from newsforge.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS sources (
    id          SERIAL PRIMARY KEY,
    user_id     INTEGER NOT NULL,
    name        TEXT NOT NULL,
    kind        TEXT NOT NULL,
    config      JSONB NOT NULL DEFAULT '{}',
    is_active   BOOLEAN NOT NULL DEFAULT TRUE,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_sources_user_active
    ON sources(user_id, is_active) WHERE is_active = TRUE;
CREATE INDEX IF NOT EXISTS idx_sources_user_kind
    ON sources(user_id, kind);
"""

_INSERT_SQL = """
INSERT INTO sources (user_id, name, kind, config, is_active)
VALUES ($1, $2, $3, $4, $5)
RETURNING *
"""


def _json_field(value: Any) -> dict[str, Any]:
    """JSONB columns arrive as text unless a codec is registered."""
    if value is None:
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


def _record_to_source(record) -> Source:
    """Convert an asyncpg Record to a Source dataclass."""
    return Source(
        id=record["id"],
        user_id=record["user_id"],
        name=record["name"],
        kind=SourceKind(record["kind"]),
        config=_json_field(record["config"]),
        is_active=record["is_active"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class SourcesRepository:
    """CRUD operations for the sources table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the sources table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Sources table ensured")

    async def create_source(self, source: Source) -> Source:
        """Insert a source and return it with its assigned id."""
        row = await self._db.fetchrow(
            _INSERT_SQL,
            source.user_id,
            source.name,
            source.kind.value,
            json.dumps(source.config),
            source.is_active,
        )
        return _record_to_source(row)

    async def get_source(self, source_id: int) -> Source | None:
        """Fetch a single source by id."""
        row = await self._db.fetchrow("SELECT * FROM sources WHERE id = $1", source_id)
        return _record_to_source(row) if row else None

    async def list_by_user(self, user_id: int, active_only: bool = False) -> list[Source]:
        """All sources for a user, oldest first."""
        sql = "SELECT * FROM sources WHERE user_id = $1"
        if active_only:
            sql += " AND is_active = TRUE"
        rows = await self._db.fetch(sql + " ORDER BY id", user_id)
        return [_record_to_source(r) for r in rows]

    async def get_active_by_user(self, user_id: int) -> list[Source]:
        """Fetch all active sources for a user."""
        return await self.list_by_user(user_id, active_only=True)

    async def set_active(self, source_id: int, is_active: bool) -> bool:
        """Toggle a source. Returns True if a row was updated."""
        result = await self._db.execute(
            "UPDATE sources SET is_active = $2, updated_at = NOW() WHERE id = $1",
            source_id, is_active,
        )
        return result.endswith("1")

    async def delete_source(self, source_id: int) -> bool:
        """Delete a source. Returns True if a row was removed."""
        result = await self._db.execute("DELETE FROM sources WHERE id = $1", source_id)
        return result.endswith("1")
