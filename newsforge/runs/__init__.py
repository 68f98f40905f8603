"""Runs: one record per fetch-coordinator invocation."""

from newsforge.runs.repository import RunsRepository
from newsforge.runs.schemas import Run, RunStatus

__all__ = ["Run", "RunStatus", "RunsRepository"]
