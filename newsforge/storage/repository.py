"""
Headline repository.

Stores the normalized items produced by a run. Items are written in one
batch per source and never updated afterwards.
"""

import logging

from newsforge.ingestion.schemas import RawItem, SourceKind
from newsforge.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS raw_headlines (
    id            SERIAL PRIMARY KEY,
    run_id        INTEGER NOT NULL REFERENCES runs(id) ON DELETE CASCADE,
    source_id     INTEGER NOT NULL,
    title         TEXT NOT NULL,
    description   TEXT,
    url           TEXT NOT NULL DEFAULT '',
    published_at  TIMESTAMPTZ,
    kind          TEXT NOT NULL,
    is_selected   BOOLEAN NOT NULL DEFAULT FALSE,
    created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_raw_headlines_run
    ON raw_headlines(run_id, id);
CREATE INDEX IF NOT EXISTS idx_raw_headlines_source
    ON raw_headlines(source_id);
"""

# Bulk insert preserving input order via WITH ORDINALITY
_BULK_INSERT_SQL = """
INSERT INTO raw_headlines
    (run_id, source_id, title, description, url, published_at, kind, is_selected, created_at)
SELECT run_id, source_id, title, description, url, published_at, kind, is_selected, created_at
FROM unnest(
    $1::int[], $2::int[], $3::text[], $4::text[], $5::text[],
    $6::timestamptz[], $7::text[], $8::boolean[], $9::timestamptz[]
) WITH ORDINALITY AS t(
    run_id, source_id, title, description, url, published_at, kind, is_selected, created_at, ord
)
ORDER BY ord
"""


def _record_to_item(record) -> RawItem:
    return RawItem(
        id=record["id"],
        run_id=record["run_id"],
        source_id=record["source_id"],
        title=record["title"],
        description=record["description"],
        url=record["url"],
        published_at=record["published_at"],
        kind=SourceKind(record["kind"]),
        is_selected=record["is_selected"],
        created_at=record["created_at"],
    )


class RawItemRepository:
    """Batch writes and per-run reads of headline rows."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the raw_headlines table (idempotent). Requires the runs table."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Raw headlines table ensured")

    async def create_items(self, items: list[RawItem]) -> int:
        """
        Insert items in one statement.

        Returns:
            Number of items written
        """
        if not items:
            return 0

        await self._db.execute(
            _BULK_INSERT_SQL,
            [i.run_id for i in items],
            [i.source_id for i in items],
            [i.title for i in items],
            [i.description for i in items],
            [i.url for i in items],
            [i.published_at for i in items],
            [i.kind.value for i in items],
            [i.is_selected for i in items],
            [i.created_at for i in items],
        )
        logger.debug(f"Stored {len(items)} headlines for run {items[0].run_id}")
        return len(items)

    async def get_by_run(self, run_id: int) -> list[RawItem]:
        """All items of a run in insertion order."""
        rows = await self._db.fetch(
            "SELECT * FROM raw_headlines WHERE run_id = $1 ORDER BY id",
            run_id,
        )
        return [_record_to_item(r) for r in rows]
