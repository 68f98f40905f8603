"""Database repository for the runs table."""

import json
import logging
from typing import Any

from newsforge.runs.schemas import Run, RunStatus
from newsforge.storage.database import Database, StorageError

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS runs (
    id            SERIAL PRIMARY KEY,
    user_id       INTEGER NOT NULL,
    status        TEXT NOT NULL DEFAULT 'draft',
    started_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    completed_at  TIMESTAMPTZ,
    stats         JSONB NOT NULL DEFAULT '{}',
    CONSTRAINT runs_completed_at_matches_status
        CHECK ((status = 'completed') = (completed_at IS NOT NULL))
);

CREATE INDEX IF NOT EXISTS idx_runs_user_started
    ON runs(user_id, started_at DESC);
"""


def _record_to_run(record) -> Run:
    stats = record["stats"]
    if isinstance(stats, str):
        stats = json.loads(stats)
    return Run(
        id=record["id"],
        user_id=record["user_id"],
        status=RunStatus(record["status"]),
        started_at=record["started_at"],
        completed_at=record["completed_at"],
        stats=dict(stats or {}),
    )


class RunsRepository:
    """Create and complete fetch runs."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the runs table (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Runs table ensured")

    async def create_run(self, user_id: int) -> Run:
        """Insert a draft run with empty stats."""
        row = await self._db.fetchrow(
            "INSERT INTO runs (user_id, status) VALUES ($1, $2) RETURNING *",
            user_id, RunStatus.DRAFT.value,
        )
        return _record_to_run(row)

    async def complete_run(self, run_id: int, stats: dict[str, Any]) -> Run:
        """
        Mark a run completed with its final stats.

        Raises:
            StorageError: If the run does not exist or was already completed
        """
        row = await self._db.fetchrow(
            """
            UPDATE runs
            SET status = $2, completed_at = NOW(), stats = $3
            WHERE id = $1 AND status <> $2
            RETURNING *
            """,
            run_id, RunStatus.COMPLETED.value, json.dumps(stats, default=str),
        )
        if row is None:
            raise StorageError(f"Run {run_id} not found or already completed")
        return _record_to_run(row)

    async def get_run(self, run_id: int) -> Run | None:
        row = await self._db.fetchrow("SELECT * FROM runs WHERE id = $1", run_id)
        return _record_to_run(row) if row else None
