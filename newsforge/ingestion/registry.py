"""
Adapter lookup by source kind.

The fetch coordinator never constructs adapters itself; it asks the
registry for the adapter that handles a source's kind.
"""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from newsforge.config.settings import Settings, get_settings
from newsforge.ingestion.arxiv_adapter import ArxivAdapter
from newsforge.ingestion.base_adapter import BaseAdapter
from newsforge.ingestion.daily_papers_adapter import DailyPapersAdapter
from newsforge.ingestion.errors import ConfigError
from newsforge.ingestion.feed_adapter import FeedAdapter
from newsforge.ingestion.mailbox_adapter import (
    CredentialProvider,
    MailboxAdapter,
    StaticTokenProvider,
)
from newsforge.ingestion.schemas import SourceKind
from newsforge.ingestion.video_adapter import VideoAdapter
from newsforge.ingestion.video_analysis import VideoAnalyzer

if TYPE_CHECKING:
    from newsforge.ai.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Maps each source kind to the adapter that handles it."""

    def __init__(self, adapters: Iterable[BaseAdapter] = ()):
        self._adapters: dict[SourceKind, BaseAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: BaseAdapter) -> None:
        """Register an adapter, replacing any previous one for its kind."""
        if adapter.kind in self._adapters:
            logger.warning(f"Replacing adapter for kind {adapter.kind.value}")
        self._adapters[adapter.kind] = adapter

    def get(self, kind: SourceKind | str) -> BaseAdapter:
        """
        Look up the adapter for a kind.

        Raises:
            ConfigError: If the kind is unknown or has no adapter
        """
        try:
            key = SourceKind(kind)
        except ValueError:
            raise ConfigError(f"Unknown source kind: {kind!r}") from None

        adapter = self._adapters.get(key)
        if adapter is None:
            raise ConfigError(f"No adapter registered for source kind {key.value!r}")
        return adapter

    def __contains__(self, kind: object) -> bool:
        try:
            return SourceKind(kind) in self._adapters
        except ValueError:
            return False

    @property
    def kinds(self) -> list[SourceKind]:
        return list(self._adapters)


def build_adapter_registry(
    settings: Settings | None = None,
    credentials: CredentialProvider | None = None,
    providers: "ProviderRegistry | None" = None,
) -> AdapterRegistry:
    """
    Build a registry holding one adapter per supported kind.

    Args:
        settings: Application settings (defaults to get_settings())
        credentials: Mailbox token source (defaults to the configured static token)
        providers: AI provider registry; video summaries are enabled when
            this is given and ``VIDEO_ANALYSIS_MODEL`` is set
    """
    settings = settings or get_settings()
    if credentials is None:
        token = settings.gmail_access_token
        credentials = StaticTokenProvider(token.get_secret_value() if token else None)

    analyzer = None
    if providers is not None and settings.video_analysis_model:
        analyzer = VideoAnalyzer(
            providers,
            model_id=settings.video_analysis_model,
            provider_id=settings.video_analysis_provider,
        )

    common = {
        "timeout": settings.http_timeout_seconds,
        "user_agent": settings.http_user_agent,
    }

    return AdapterRegistry(
        [
            FeedAdapter(
                max_attempts=settings.feed_max_attempts,
                base_delay=settings.feed_retry_base_delay,
                **common,
            ),
            MailboxAdapter(
                credentials,
                default_max_results=settings.gmail_default_max_results,
                **common,
            ),
            ArxivAdapter(**common),
            DailyPapersAdapter(**common),
            VideoAdapter(analyzer=analyzer, **common),
        ]
    )
