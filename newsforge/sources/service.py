"""Source management: validated creation, listing and toggling."""

import logging
from typing import Any

from pydantic import ValidationError

from newsforge.ingestion.errors import ConfigError
from newsforge.ingestion.schemas import SourceKind, VideoConfig, parse_source_config
from newsforge.sources.schemas import Source
from newsforge.storage.protocols import SourceStore

logger = logging.getLogger(__name__)


class DuplicateSourceError(ConfigError):
    """The source duplicates one the user already has."""


class SourcesService:
    """Validates source configs before they reach the store.

    Works against any ``SourceStore`` (asyncpg repository or in-memory).
    """

    def __init__(self, store: SourceStore) -> None:
        self._store = store

    @property
    def store(self) -> SourceStore:
        """Access the underlying store for direct operations."""
        return self._store

    async def create_source(
        self,
        user_id: int,
        name: str,
        kind: SourceKind | str,
        config: dict[str, Any],
        is_active: bool = True,
    ) -> Source:
        """Validate and store a new source.

        Raises:
            ConfigError: If the config does not match the kind
            DuplicateSourceError: If a video source for the same video exists
        """
        try:
            source_kind = SourceKind(kind)
        except ValueError:
            raise ConfigError(f"Unknown source kind: {kind!r}") from None

        try:
            validated = parse_source_config(source_kind, config)
        except ValidationError as e:
            raise ConfigError(f"Invalid {source_kind.value} source config: {e}") from e

        if isinstance(validated, VideoConfig):
            await self._ensure_unique_video(user_id, validated.video_id)

        stored_config = validated.model_dump(by_alias=False, exclude={"kind"}, mode="json")
        source = await self._store.create_source(
            Source(
                user_id=user_id,
                name=name,
                kind=source_kind,
                config=stored_config,
                is_active=is_active,
            )
        )
        logger.info(f"Created {source_kind.value} source {source.id} for user {user_id}")
        return source

    async def _ensure_unique_video(self, user_id: int, video_id: str) -> None:
        for existing in await self._store.list_by_user(user_id):
            if existing.kind != SourceKind.VIDEO:
                continue
            existing_id = existing.config.get("video_id") or existing.config.get("videoId")
            if existing_id == video_id:
                raise DuplicateSourceError("This video has already been added as a source.")

    async def list_sources(self, user_id: int, active_only: bool = False) -> list[Source]:
        return await self._store.list_by_user(user_id, active_only=active_only)

    async def set_active(self, source_id: int, is_active: bool) -> bool:
        return await self._store.set_active(source_id, is_active)

    async def delete_source(self, source_id: int) -> bool:
        return await self._store.delete_source(source_id)
